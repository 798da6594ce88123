"""
FastAPI dependency injection providers.

Routes receive the booking store, Stripe gateway, notifier and reconciler
through these providers instead of importing the module-level singletons, so
tests can swap any of them with app.dependency_overrides.

Testing Example:
    >>> store = BookingStore(tmp_path / "bookings.json")
    >>> app.dependency_overrides[get_booking_store] = lambda: store
    >>> client = TestClient(app)
    >>> client.get("/bookings/cos1").json()
    {'property': 'cos1', 'bookings': []}
"""

from __future__ import annotations

from fastapi import Depends

from hrzn_bookings.db.store import BookingStore, booking_store
from hrzn_bookings.network.notifications import KlaviyoNotifier, notifier
from hrzn_bookings.network.payments import StripeGateway, gateway
from hrzn_bookings.services.property_directory import PropertyDirectory, directory
from hrzn_bookings.services.reconciler import PaymentEventReconciler


def get_booking_store() -> BookingStore:
    return booking_store


def get_payment_gateway() -> StripeGateway:
    return gateway


def get_notifier() -> KlaviyoNotifier:
    return notifier


def get_property_directory() -> PropertyDirectory:
    return directory


def get_reconciler(
    store: BookingStore = Depends(get_booking_store),
    directory: PropertyDirectory = Depends(get_property_directory),
    notifier: KlaviyoNotifier = Depends(get_notifier),
) -> PaymentEventReconciler:
    """
    Build a reconciler over the injected store, directory and notifier.

    Overriding get_booking_store alone is enough for the webhook route to
    write into a test store.
    """
    return PaymentEventReconciler(store, directory, notifier)
