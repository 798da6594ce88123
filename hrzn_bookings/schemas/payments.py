from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel

from hrzn_bookings.schemas.bookings import PaymentType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutSessionPayload(_CamelModel):
    """
    Schema for building a hosted checkout session from the booking widget.
    """

    amount: PositiveInt = Field(..., description="Stay amount in minor units")
    listing_id: Optional[str] = Field(None, description="Rental platform listing ID")
    check_in: str = Field(..., description="Check-in date text")
    check_out: str = Field(..., description="Check-out date text")
    nights: PositiveInt
    guests: PositiveInt
    property_name: Optional[str] = Field(None, description="Display name for the line item")
    cleaning_fee: Optional[int] = Field(None, ge=0, description="Cleaning fee in minor units")


class BookingDetails(_CamelModel):
    """
    Stay details nested in a payment intent request.
    """

    check_in: str = Field(..., description="Check-in date, ISO or loose text like 'Dec 10'")
    check_out: str = Field(..., description="Check-out date, ISO or loose text")
    nights: PositiveInt
    guests: PositiveInt
    base_rate: float = Field(..., ge=0, description="Nightly rate in minor units")
    cleaning_fee: int = Field(..., ge=0, description="Cleaning fee in minor units")
    listing_id: Optional[str] = Field(None, description="Rental platform listing ID")
    payment_type: PaymentType = PaymentType.CARD


class PaymentIntentPayload(_CamelModel):
    """
    Schema for creating a payment intent. Contact fields travel to Stripe as metadata.
    """

    amount: PositiveInt = Field(..., description="Charge amount in minor units")
    email: str
    name: str
    phone: str = ""
    booking: BookingDetails
