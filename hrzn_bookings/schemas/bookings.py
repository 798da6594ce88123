from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel


class PaymentType(str, Enum):
    CARD = "card"
    ACH = "ach"


class Booking(BaseModel):
    """
    A confirmed direct booking, created from a succeeded Stripe payment intent.

    Serialized in camelCase both in the bookings file and in API responses.
    ``id`` and ``payment_id`` both hold the payment intent id.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Stripe payment intent ID")
    payment_id: str = Field(..., description="Stripe payment intent ID")
    guest_name: str = ""
    email: str = ""
    phone: str = ""
    check_in: date
    check_out: date
    nights: PositiveInt
    guests: PositiveInt
    total: int = Field(..., description="Amount in minor currency units")
    property_code: str
    property_name: str
    listing_id: str
    payment_type: PaymentType = PaymentType.CARD
    created_at: datetime

    def to_public(self) -> dict:
        """JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)
