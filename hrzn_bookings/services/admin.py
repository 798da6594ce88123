"""Admin operations on stored bookings."""

from __future__ import annotations

import hmac
from dataclasses import dataclass

import structlog

from hrzn_bookings.db.store import BookingStore
from hrzn_bookings.errors import PersistenceError, Unauthorized
from hrzn_bookings.schemas.bookings import Booking

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    booking: Booking
    remaining: int
    persisted: bool
    error: str | None = None


def verify_admin_credential(supplied: str | None, secret: str) -> None:
    """
    Check a supplied admin credential in constant time.

    Raises:
        Unauthorized: If the credential is missing or does not match
    """
    if not supplied or not secret:
        raise Unauthorized("Unauthorized - Admin password required")
    if not hmac.compare_digest(supplied.encode("utf-8"), secret.encode("utf-8")):
        raise Unauthorized("Unauthorized - Admin password required")


def delete_booking(
    store: BookingStore,
    property_code: str,
    booking_id: str,
    supplied_credential: str | None,
    admin_secret: str,
) -> DeletionResult:
    """
    Delete one booking after checking the admin credential.

    A failed file write does not undo the deletion; the result reports
    ``persisted=False`` so the caller can alert.

    Args:
        store: Booking store
        property_code: Property the booking is filed under
        booking_id: Booking ID to delete
        supplied_credential: Credential sent by the caller
        admin_secret: Configured admin password

    Returns:
        DeletionResult: Removed booking and remaining count for the property

    Raises:
        Unauthorized: If the credential is wrong (store untouched)
        NotFound: If the property or booking does not exist (store untouched)
    """
    try:
        verify_admin_credential(supplied_credential, admin_secret)
    except Unauthorized:
        logger.warning("admin_delete_unauthorized", property_code=property_code)
        raise

    persisted, error = True, None
    try:
        removed = store.remove(property_code, booking_id)
    except PersistenceError as e:
        # remove() raises only after the booking left memory
        persisted, error = False, e.message
        removed = e.booking

    remaining = store.count(property_code)
    logger.info(
        "booking_deleted",
        booking_id=removed.id,
        guest_name=removed.guest_name,
        property_code=property_code,
        remaining=remaining,
        persisted=persisted,
    )
    return DeletionResult(booking=removed, remaining=remaining, persisted=persisted, error=error)
