"""
Unit tests for the checkout session and payment intent endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from hrzn_bookings.dependencies import get_notifier, get_payment_gateway
from hrzn_bookings.errors import UpstreamError
from hrzn_bookings.main import app


@pytest.fixture
def gateway() -> MagicMock:
    mock_gateway = MagicMock()
    mock_gateway.create_checkout_session.return_value = "cs_test_1"
    mock_gateway.create_payment_intent.return_value = "pi_1_secret_abc"
    return mock_gateway


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def api(
    client: TestClient, gateway: MagicMock, notifier: MagicMock
) -> Generator[TestClient, None, None]:
    """Test client with Stripe and Klaviyo replaced by mocks."""
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield client


def checkout_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "amount": 100000,
        "listingId": "your-vegas-listing-id",
        "checkIn": "Dec 10",
        "checkOut": "Dec 13",
        "nights": 3,
        "guests": 2,
        "propertyName": "Vegas Villa",
    }
    body.update(overrides)
    return body


def intent_body(**booking_overrides: Any) -> dict[str, Any]:
    booking: dict[str, Any] = {
        "checkIn": "2025-12-10",
        "checkOut": "2025-12-13",
        "nights": 3,
        "guests": 2,
        "baseRate": 1000,
        "cleaningFee": 150,
        "listingId": "your-vegas-listing-id",
    }
    booking.update(booking_overrides)
    return {
        "amount": 3150,
        "email": "guest@example.com",
        "name": "Test Guest",
        "phone": "+15555550100",
        "booking": booking,
    }


@pytest.mark.unit
def test_checkout_session_returns_id(api: TestClient, gateway: MagicMock) -> None:
    """Test the happy path and the itemized fee breakdown sent to Stripe."""
    response = api.post("/create-checkout-session", json=checkout_body())

    assert response.status_code == 200
    assert response.json() == {"id": "cs_test_1"}
    line_items = gateway.create_checkout_session.call_args.args[0]
    assert [item["price_data"]["unit_amount"] for item in line_items] == [
        100000,
        15000,
        12000,
        10160,
    ]
    assert line_items[0]["price_data"]["product_data"]["name"] == "Vegas Villa - 3 nights"


@pytest.mark.unit
def test_checkout_session_defaults_property_title(api: TestClient, gateway: MagicMock) -> None:
    body = checkout_body()
    del body["propertyName"]

    api.post("/create-checkout-session", json=body)

    line_items = gateway.create_checkout_session.call_args.args[0]
    assert line_items[0]["price_data"]["product_data"]["name"] == "Luxury Villa - 3 nights"


@pytest.mark.unit
def test_checkout_session_stripe_failure_returns_500_and_alerts(
    api: TestClient, gateway: MagicMock, notifier: MagicMock
) -> None:
    """Test that a Stripe failure is passed through with Stripe's message."""
    gateway.create_checkout_session.side_effect = UpstreamError("Your card was declined")

    response = api.post("/create-checkout-session", json=checkout_body())

    assert response.status_code == 500
    assert response.json() == {"error": "Your card was declined"}
    assert notifier.alert_error.call_args.args[0] == "STRIPE_CHECKOUT_SESSION_FAILED"


@pytest.mark.unit
def test_checkout_session_rejects_malformed_body(api: TestClient, gateway: MagicMock) -> None:
    """Test that a missing amount is a 400 and Stripe is never called."""
    body = checkout_body()
    del body["amount"]

    response = api.post("/create-checkout-session", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"
    gateway.create_checkout_session.assert_not_called()


@pytest.mark.unit
def test_payment_intent_returns_client_secret(api: TestClient, gateway: MagicMock) -> None:
    """Test the metadata the webhook will later rebuild the booking from."""
    response = api.post("/create-payment-intent", json=intent_body())

    assert response.status_code == 200
    assert response.json() == {"client_secret": "pi_1_secret_abc"}

    amount, currency, metadata = gateway.create_payment_intent.call_args.args
    assert amount == 3150
    assert currency == "usd"
    assert metadata["customer_email"] == "guest@example.com"
    assert metadata["check_in"] == "2025-12-10"
    assert metadata["nights"] == 3
    assert metadata["property_code"] == "vegas1"
    assert metadata["payment_type"] == "card"


@pytest.mark.unit
def test_payment_intent_resolves_loose_dates(api: TestClient, gateway: MagicMock) -> None:
    """Test that year-less dates are sent to Stripe in ISO form."""
    now = datetime(2025, 12, 11, tzinfo=timezone.utc)
    with patch("hrzn_bookings.routes.payments.utc_now", return_value=now):
        response = api.post(
            "/create-payment-intent", json=intent_body(checkIn="Dec 1", checkOut="Dec 4")
        )

    assert response.status_code == 200
    metadata = gateway.create_payment_intent.call_args.args[2]
    assert metadata["check_in"] == "2026-12-01"
    assert metadata["check_out"] == "2026-12-04"


@pytest.mark.unit
def test_payment_intent_rejects_nights_mismatch(api: TestClient, gateway: MagicMock) -> None:
    """Test that inconsistent dates are rejected before Stripe is called."""
    response = api.post("/create-payment-intent", json=intent_body(nights=5))

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid booking dates"}
    gateway.create_payment_intent.assert_not_called()


@pytest.mark.unit
def test_payment_intent_stripe_failure_returns_500_and_alerts(
    api: TestClient, gateway: MagicMock, notifier: MagicMock
) -> None:
    gateway.create_payment_intent.side_effect = UpstreamError("Invalid API Key provided")

    response = api.post("/create-payment-intent", json=intent_body())

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid API Key provided"}
    error_type, details = notifier.alert_error.call_args.args
    assert error_type == "STRIPE_PAYMENT_INTENT_FAILED"
    assert details["user_email"] == "guest@example.com"
