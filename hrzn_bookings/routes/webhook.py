"""Stripe webhook receiver route."""

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from hrzn_bookings.dependencies import get_notifier, get_payment_gateway, get_reconciler
from hrzn_bookings.errors import SignatureError
from hrzn_bookings.metrics import webhook_events
from hrzn_bookings.network.notifications import KlaviyoNotifier
from hrzn_bookings.network.payments import StripeGateway
from hrzn_bookings.services.reconciler import PAYMENT_SUCCEEDED, PaymentEventReconciler

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/webhook")
async def receive_stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    gateway: StripeGateway = Depends(get_payment_gateway),
    reconciler: PaymentEventReconciler = Depends(get_reconciler),
    notifier: KlaviyoNotifier = Depends(get_notifier),
) -> JSONResponse:
    """
    Handle incoming Stripe webhook events.

    Only payment_intent.succeeded creates a booking. Every other event type
    is acknowledged and ignored.

    Authentication: Stripe-Signature header, verified against the raw body

    Responses:
        400: Signature verification failed (Stripe will retry)
        200: Everything else, including processing failures, which are
             logged and alerted instead of triggering a Stripe retry

    Args:
        request: FastAPI request; the body is read raw, never re-serialized

    Returns:
        JSONResponse: ``{"received": true}`` acknowledgment
    """
    payload = await request.body()
    signature = request.headers.get("Stripe-Signature")

    try:
        event = gateway.verify_event(payload, signature)
    except SignatureError as e:
        logger.warning("webhook_signature_failed", error=e.message)
        webhook_events.labels(event_type="unknown", status="rejected").inc()
        background_tasks.add_task(
            notifier.alert_error,
            "WEBHOOK_SIGNATURE_FAILED",
            {"error": e.message, "has_signature": bool(signature)},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Webhook Error: {e.message}"},
        )

    event_type = event.get("type") or "unknown"
    logger.info("webhook_received", event_type=event_type, event_id=event.get("id"))

    try:
        booking = await run_in_threadpool(reconciler.reconcile, event, background_tasks.add_task)
    except Exception as e:
        logger.exception(
            "webhook_processing_failed",
            event_type=event_type,
            event_id=event.get("id"),
            error=str(e),
        )
        webhook_events.labels(event_type=event_type, status="failed").inc()
        background_tasks.add_task(
            notifier.alert_error,
            "WEBHOOK_PROCESSING_FAILED",
            {"error": str(e), "event_type": event_type, "event_id": event.get("id")},
        )
        return JSONResponse(content={"received": True})

    if booking is not None:
        outcome = "processed"
    elif event_type == PAYMENT_SUCCEEDED:
        outcome = "failed"
    else:
        outcome = "ignored"
    webhook_events.labels(event_type=event_type, status=outcome).inc()

    return JSONResponse(content={"received": True})
