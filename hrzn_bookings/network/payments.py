"""
Stripe gateway: payment intents, checkout sessions and webhook verification.

Everything Stripe-specific stays behind this module. Callers get plain values
back and see only UpstreamError / SignatureError from hrzn_bookings.errors.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import stripe

from hrzn_bookings.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from hrzn_bookings.errors import SignatureError, UpstreamError
from hrzn_bookings.metrics import payment_requests

logger = logging.getLogger(__name__)


class StripeGateway:
    """
    Thin wrapper over the Stripe SDK.

    Attributes:
        api_key: Stripe secret key used for API calls
        webhook_secret: Endpoint signing secret used to verify webhook payloads
    """

    def __init__(self, api_key: str, webhook_secret: str):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_payment_intent(
        self, amount: int, currency: str, metadata: dict[str, Any]
    ) -> str:
        """
        Create a payment intent carrying booking metadata.

        Metadata round-trips through Stripe as strings; every value is
        stringified here and parsed back by the reconciler.

        Args:
            amount: Charge amount in minor units
            currency: ISO currency code (e.g., "usd")
            metadata: Flat booking metadata

        Returns:
            str: The payment intent's client secret

        Raises:
            UpstreamError: If Stripe rejects the request or is unreachable
        """
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata={key: str(value) for key, value in metadata.items()},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            payment_requests.labels(operation="payment_intent", status="failure").inc()
            logger.error("Stripe payment intent failed: amount=%s, error=%s", amount, e)
            raise UpstreamError(str(e.user_message or e)) from e

        payment_requests.labels(operation="payment_intent", status="success").inc()
        logger.info("Payment intent created: id=%s, amount=%s", intent.id, amount)
        return intent.client_secret

    def create_checkout_session(
        self, line_items: list[dict[str, Any]], success_url: str, cancel_url: str
    ) -> str:
        """
        Create a hosted checkout session.

        Returns:
            str: The checkout session ID

        Raises:
            UpstreamError: If Stripe rejects the request or is unreachable
        """
        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                mode="payment",
                line_items=line_items,
                success_url=success_url,
                cancel_url=cancel_url,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            payment_requests.labels(operation="checkout_session", status="failure").inc()
            logger.error("Stripe checkout session failed: error=%s", e)
            raise UpstreamError(str(e.user_message or e)) from e

        payment_requests.labels(operation="checkout_session", status="success").inc()
        logger.info("Checkout session created: id=%s", session.id)
        return session.id

    def verify_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Verify a webhook payload's signature and parse it.

        Args:
            payload: Raw request body, exactly as received
            signature: Value of the Stripe-Signature header

        Returns:
            dict: The parsed event

        Raises:
            SignatureError: If the header is missing, the signature does not
                match, or the body is not valid JSON
        """
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret)
            event: dict[str, Any] = json.loads(body)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(str(e.user_message or e)) from e
        except ValueError as e:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            raise SignatureError(f"Invalid payload: {e}") from e

        return event


gateway = StripeGateway(api_key=STRIPE_SECRET_KEY, webhook_secret=STRIPE_WEBHOOK_SECRET)
