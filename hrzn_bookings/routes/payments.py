"""Stripe payment intent and checkout session endpoints for the booking widget."""

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from hrzn_bookings.config import CHECKOUT_CANCEL_URL, CHECKOUT_SUCCESS_URL, CURRENCY
from hrzn_bookings.dependencies import get_notifier, get_payment_gateway, get_property_directory
from hrzn_bookings.errors import UpstreamError
from hrzn_bookings.network.notifications import KlaviyoNotifier
from hrzn_bookings.network.payments import StripeGateway
from hrzn_bookings.schemas.payments import CheckoutSessionPayload, PaymentIntentPayload
from hrzn_bookings.services.pricing import checkout_line_items, quote_checkout, validate_nights
from hrzn_bookings.services.property_directory import PropertyDirectory
from hrzn_bookings.utils.datetime import resolve_loose_date, utc_now

logger = structlog.get_logger(__name__)
router = APIRouter()

DEFAULT_PROPERTY_TITLE = "Luxury Villa"


@router.post("/create-checkout-session", response_model=None)
def create_checkout_session(
    payload: CheckoutSessionPayload,
    background_tasks: BackgroundTasks,
    gateway: StripeGateway = Depends(get_payment_gateway),
    notifier: KlaviyoNotifier = Depends(get_notifier),
) -> dict[str, str] | JSONResponse:
    """
    Create a hosted checkout session with an itemized fee breakdown.

    Args:
        payload: Stay amount, dates, nights, guests and optional cleaning fee
        background_tasks: FastAPI background task runner (error alerts)

    Returns:
        dict: ``{"id": session_id}``
    """
    breakdown = quote_checkout(payload.amount, payload.cleaning_fee)
    line_items = checkout_line_items(
        breakdown,
        currency=CURRENCY,
        property_name=payload.property_name or DEFAULT_PROPERTY_TITLE,
        check_in=payload.check_in,
        check_out=payload.check_out,
        nights=payload.nights,
        guests=payload.guests,
    )

    try:
        session_id = gateway.create_checkout_session(
            line_items, success_url=CHECKOUT_SUCCESS_URL, cancel_url=CHECKOUT_CANCEL_URL
        )
    except UpstreamError as e:
        background_tasks.add_task(
            notifier.alert_error,
            "STRIPE_CHECKOUT_SESSION_FAILED",
            {
                "error": e.message,
                "amount": payload.amount,
                "listing_id": payload.listing_id,
                "check_in": payload.check_in,
                "check_out": payload.check_out,
            },
        )
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    logger.info(
        "checkout_session_created",
        session_id=session_id,
        listing_id=payload.listing_id,
        total=breakdown.total,
    )
    return {"id": session_id}


@router.post("/create-payment-intent", response_model=None)
def create_payment_intent(
    payload: PaymentIntentPayload,
    background_tasks: BackgroundTasks,
    gateway: StripeGateway = Depends(get_payment_gateway),
    notifier: KlaviyoNotifier = Depends(get_notifier),
    directory: PropertyDirectory = Depends(get_property_directory),
) -> dict[str, str] | JSONResponse:
    """
    Create a payment intent carrying everything the webhook needs to build the booking.

    The night count is checked against the dates before Stripe is called.
    Dates are sent to Stripe already resolved to ISO form.

    Args:
        payload: Guest contact details and booking details
        background_tasks: FastAPI background task runner (error alerts)

    Returns:
        dict: ``{"client_secret": ...}`` for the front end to confirm the payment

    Raises:
        ValidationError: If the dates cannot be resolved or disagree with nights
    """
    details = payload.booking
    today = utc_now().date()
    check_in = resolve_loose_date(details.check_in, today=today)
    check_out = resolve_loose_date(details.check_out, today=today)
    validate_nights(check_in, check_out, details.nights)

    prop = directory.resolve(details.listing_id)
    logger.info("property_detected", listing_id=prop.listing_id, property_code=prop.code)

    metadata = {
        "customer_email": payload.email,
        "customer_name": payload.name,
        "customer_phone": payload.phone,
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
        "nights": details.nights,
        "guests": details.guests,
        "base_rate": details.base_rate,
        "cleaning_fee": details.cleaning_fee,
        "listing_id": prop.listing_id,
        "property_code": prop.code,
        "payment_type": details.payment_type.value,
    }

    try:
        client_secret = gateway.create_payment_intent(payload.amount, CURRENCY, metadata)
    except UpstreamError as e:
        background_tasks.add_task(
            notifier.alert_error,
            "STRIPE_PAYMENT_INTENT_FAILED",
            {
                "error": e.message,
                "user_email": payload.email,
                "user_name": payload.name,
                "amount": payload.amount,
                "check_in": details.check_in,
                "check_out": details.check_out,
                "listing_id": details.listing_id,
            },
        )
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    return {"client_secret": client_secret}
