"""Fee math for checkout sessions and booking totals. All amounts are in minor units."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from hrzn_bookings.errors import ValidationError
from hrzn_bookings.utils.datetime import nights_between

DEFAULT_CLEANING_FEE = 15000
SERVICE_FEE_RATE = Decimal("0.12")
TAX_RATE = Decimal("0.08")


@dataclass(frozen=True)
class FeeBreakdown:
    stay: int
    cleaning_fee: int
    service_fee: int
    taxes: int

    @property
    def total(self) -> int:
        return self.stay + self.cleaning_fee + self.service_fee + self.taxes


def round_half_up(value: Any) -> int:
    """
    Round a number or numeric string to the nearest integer, halves away from zero.

    Raises:
        ValidationError: If the value is not numeric
    """
    try:
        return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e


def quote_checkout(amount: int, cleaning_fee: int | None = None) -> FeeBreakdown:
    """
    Itemize a stay for a hosted checkout session.

    Service fee is 12% of the stay; taxes are 8% of stay + cleaning + service.

    Example:
        >>> quote_checkout(100000).total
        137160
    """
    cleaning = DEFAULT_CLEANING_FEE if cleaning_fee is None else cleaning_fee
    service_fee = round_half_up(Decimal(amount) * SERVICE_FEE_RATE)
    taxes = round_half_up(Decimal(amount + cleaning + service_fee) * TAX_RATE)
    return FeeBreakdown(stay=amount, cleaning_fee=cleaning, service_fee=service_fee, taxes=taxes)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def checkout_line_items(
    breakdown: FeeBreakdown,
    currency: str,
    property_name: str,
    check_in: str,
    check_out: str,
    nights: int,
    guests: int,
) -> list[dict[str, Any]]:
    """Build Stripe line items: the stay, then cleaning fee, service fee and taxes."""

    def item(name: str, amount: int, description: str | None = None) -> dict[str, Any]:
        product: dict[str, Any] = {"name": name}
        if description:
            product["description"] = description
        return {
            "price_data": {"currency": currency, "product_data": product, "unit_amount": amount},
            "quantity": 1,
        }

    return [
        item(
            f"{property_name} - {_plural(nights, 'night')}",
            breakdown.stay,
            f"{check_in} to {check_out} • {_plural(guests, 'guest')}",
        ),
        item("Cleaning Fee", breakdown.cleaning_fee),
        item("Service Fee", breakdown.service_fee),
        item("Taxes", breakdown.taxes),
    ]


def validate_nights(check_in: date, check_out: date, nights: int) -> None:
    """
    Reject a stay whose night count disagrees with its dates.

    Raises:
        ValidationError: If ``nights`` is not the day span between the dates
    """
    if nights_between(check_in, check_out) != nights:
        raise ValidationError("Invalid booking dates")


def booking_total(base_rate: Any, nights: int, cleaning_fee: Any) -> int:
    """Total charged for a booking: rounded nightly rate times nights, plus cleaning."""
    return round_half_up(base_rate) * nights + round_half_up(cleaning_fee)
