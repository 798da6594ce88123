"""
Shared fixtures for the booking service tests.

Required settings are pinned here, before any hrzn_bookings module is
imported, so tests never depend on the developer's .env file.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
import tempfile
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Generator

TEST_WEBHOOK_SECRET = "whsec_test_secret"
TEST_ADMIN_PASSWORD = "test-admin-password"

os.environ["STRIPE_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET
os.environ["ADMIN_PASSWORD"] = TEST_ADMIN_PASSWORD
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["KLAVIYO_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "INFO"
os.environ["BOOKINGS_FILE"] = os.path.join(tempfile.mkdtemp(), "bookings.json")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hrzn_bookings.db.store import BookingStore  # noqa: E402
from hrzn_bookings.dependencies import get_booking_store  # noqa: E402
from hrzn_bookings.main import app  # noqa: E402
from hrzn_bookings.schemas.bookings import Booking  # noqa: E402


@pytest.fixture
def admin_password() -> str:
    return TEST_ADMIN_PASSWORD


@pytest.fixture
def store(tmp_path: Any) -> BookingStore:
    """Empty booking store backed by a file in a temp directory."""
    return BookingStore(tmp_path / "bookings.json")


@pytest.fixture
def make_booking() -> Callable[..., Booking]:
    """
    Factory for bookings with sensible defaults.

    Example:
        >>> booking = make_booking(id="pi_2", guest_name="Jane")
    """

    def _make(**overrides: Any) -> Booking:
        booking_id = overrides.pop("id", "pi_test_123")
        fields: dict[str, Any] = {
            "id": booking_id,
            "payment_id": booking_id,
            "guest_name": "Test Guest",
            "email": "guest@example.com",
            "phone": "+15555550100",
            "check_in": date(2025, 12, 10),
            "check_out": date(2025, 12, 13),
            "nights": 3,
            "guests": 2,
            "total": 3150,
            "property_code": "cos1",
            "property_name": "Colorado Springs Retreat",
            "listing_id": "869f5e1f-223b-4cc2-b64a-a0f4b8194c82",
            "created_at": datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return Booking(**fields)

    return _make


@pytest.fixture
def payment_metadata() -> dict[str, str]:
    """Metadata as Stripe returns it on a payment intent: all strings."""
    return {
        "customer_email": "guest@example.com",
        "customer_name": "Test Guest",
        "customer_phone": "+15555550100",
        "check_in": "2025-12-10",
        "check_out": "2025-12-13",
        "nights": "3",
        "guests": "2",
        "base_rate": "1000",
        "cleaning_fee": "150",
        "listing_id": "869f5e1f-223b-4cc2-b64a-a0f4b8194c82",
        "property_code": "cos1",
    }


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    """Factory for Stripe event payloads."""

    def _make(
        metadata: dict[str, str] | None = None,
        payment_id: str = "pi_test_123",
        event_type: str = "payment_intent.succeeded",
    ) -> dict[str, Any]:
        return {
            "id": f"evt_{payment_id}",
            "object": "event",
            "type": event_type,
            "data": {
                "object": {
                    "id": payment_id,
                    "object": "payment_intent",
                    "amount": 3150,
                    "currency": "usd",
                    "metadata": metadata or {},
                }
            },
        }

    return _make


@pytest.fixture
def sign() -> Callable[..., str]:
    """
    Build a Stripe-Signature header for a payload, the way Stripe signs webhooks.

    Example:
        >>> headers = {"Stripe-Signature": sign(body)}
    """

    def _sign(payload: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
        timestamp = int(time.time())
        signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
        digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    return _sign


@pytest.fixture
def encode() -> Callable[[dict[str, Any]], bytes]:
    return lambda event: json.dumps(event).encode("utf-8")


@pytest.fixture
def client(store: BookingStore) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the temp-file store."""
    app.dependency_overrides[get_booking_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
