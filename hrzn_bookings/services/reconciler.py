"""Turn succeeded Stripe payment intents into stored bookings."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

import structlog
from pydantic import ValidationError as PydanticValidationError

from hrzn_bookings.db.store import BookingStore
from hrzn_bookings.errors import PersistenceError, ValidationError
from hrzn_bookings.metrics import bookings_created
from hrzn_bookings.network.notifications import KlaviyoNotifier
from hrzn_bookings.schemas.bookings import Booking, PaymentType
from hrzn_bookings.services.pricing import booking_total
from hrzn_bookings.services.property_directory import PropertyDirectory
from hrzn_bookings.utils.datetime import nights_between, resolve_loose_date, utc_now

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"

# Schedules fn(*args) to run later; FastAPI's BackgroundTasks.add_task fits
Defer = Callable[..., None]


def _run_now(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    func(*args, **kwargs)


def _metadata_int(metadata: Mapping[str, Any], key: str) -> int:
    value = metadata.get(key)
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid {key} in payment metadata: {value!r}") from e


def build_booking(
    payment_intent: Mapping[str, Any],
    directory: PropertyDirectory,
    now: datetime | None = None,
) -> Booking:
    """
    Derive a booking from a succeeded payment intent.

    Dates may be ISO or loose text without a year ("Dec 10"); the total is
    computed from the nightly rate, never read from metadata.

    Args:
        payment_intent: Stripe payment intent object (``event.data.object``)
        directory: Property directory used to resolve the listing
        now: Reconciliation time (defaults to current UTC time)

    Returns:
        Booking: The derived booking, not yet stored

    Raises:
        ValidationError: If metadata is missing, malformed or inconsistent
    """
    now = now or utc_now()
    payment_id = payment_intent.get("id")
    if not payment_id:
        raise ValidationError("Payment intent has no id")

    metadata: Mapping[str, Any] = payment_intent.get("metadata") or {}

    check_in = resolve_loose_date(metadata.get("check_in", ""), today=now.date())
    check_out = resolve_loose_date(metadata.get("check_out", ""), today=now.date())
    nights = _metadata_int(metadata, "nights")
    guests = _metadata_int(metadata, "guests")

    if nights_between(check_in, check_out) != nights:
        raise ValidationError(
            f"Nights {nights} do not match stay {check_in.isoformat()} to {check_out.isoformat()}"
        )

    prop = directory.resolve(metadata.get("listing_id"))
    property_code = metadata.get("property_code")
    if not directory.is_known_code(property_code):
        property_code = prop.code

    try:
        payment_type = PaymentType(metadata.get("payment_type") or PaymentType.CARD.value)
    except ValueError as e:
        raise ValidationError(f"Unknown payment type: {metadata.get('payment_type')!r}") from e

    try:
        return Booking(
            id=payment_id,
            payment_id=payment_id,
            guest_name=metadata.get("customer_name") or "",
            email=metadata.get("customer_email") or "",
            phone=metadata.get("customer_phone") or "",
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            guests=guests,
            total=booking_total(metadata.get("base_rate"), nights, metadata.get("cleaning_fee")),
            property_code=property_code,
            property_name=prop.name,
            listing_id=prop.listing_id,
            payment_type=payment_type,
            created_at=now,
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid booking: {e}") from e


class PaymentEventReconciler:
    """
    Consumes verified Stripe events and commits bookings to the store.

    Safe to run repeatedly for the same event: the store upserts by payment
    intent ID and the booking alert only goes out for new bookings.

    Example:
        >>> reconciler = PaymentEventReconciler(store, directory, notifier)
        >>> booking = reconciler.reconcile(event, defer=background_tasks.add_task)
    """

    def __init__(
        self,
        store: BookingStore,
        directory: PropertyDirectory,
        notifier: KlaviyoNotifier,
    ):
        self.store = store
        self.directory = directory
        self.notifier = notifier

    def reconcile(self, event: Mapping[str, Any], defer: Defer = _run_now) -> Booking | None:
        """
        Process one verified event.

        Args:
            event: Parsed Stripe event
            defer: Scheduler for notifications; runs them inline by default

        Returns:
            Booking | None: The stored booking, or None for events that create nothing
        """
        event_type = event.get("type")
        if event_type != PAYMENT_SUCCEEDED:
            logger.info("event_ignored", event_type=event_type, event_id=event.get("id"))
            return None

        payment_intent: Mapping[str, Any] = (event.get("data") or {}).get("object") or {}
        logger.info("payment_succeeded", payment_id=payment_intent.get("id"))

        try:
            booking = build_booking(payment_intent, self.directory)
        except ValidationError as e:
            metadata = payment_intent.get("metadata") or {}
            logger.error(
                "booking_derivation_failed",
                payment_id=payment_intent.get("id"),
                error=e.message,
            )
            defer(
                self.notifier.alert_error,
                "BOOKING_CREATION_FAILED",
                {
                    "error": e.message,
                    "payment_id": payment_intent.get("id"),
                    "guest_name": metadata.get("customer_name"),
                    "guest_email": metadata.get("customer_email"),
                    "property_code": metadata.get("property_code"),
                },
            )
            return None

        try:
            inserted = self.store.append(booking.property_code, booking)
        except PersistenceError as e:
            # Kept in memory; the next successful write persists it
            inserted = True
            defer(
                self.notifier.alert_error,
                "FILE_SAVE_FAILED",
                {"error": e.message, "file": str(self.store.path), "booking_id": booking.id},
            )

        if not inserted:
            logger.info(
                "booking_redelivered",
                booking_id=booking.id,
                property_code=booking.property_code,
            )
            return booking

        bookings_created.labels(property_code=booking.property_code).inc()
        logger.info(
            "booking_created",
            booking_id=booking.id,
            property_code=booking.property_code,
            property_name=booking.property_name,
            check_in=booking.check_in.isoformat(),
            check_out=booking.check_out.isoformat(),
            total=booking.total,
            property_bookings=self.store.count(booking.property_code),
        )
        defer(self.notifier.booking_created, booking)
        return booking
