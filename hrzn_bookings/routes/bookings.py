from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, status
from fastapi.responses import JSONResponse

from hrzn_bookings.config import ADMIN_PASSWORD
from hrzn_bookings.db.store import BookingStore
from hrzn_bookings.dependencies import get_booking_store, get_notifier
from hrzn_bookings.errors import BookingServiceError
from hrzn_bookings.network.notifications import KlaviyoNotifier
from hrzn_bookings.services.admin import delete_booking

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/bookings")
def list_all_bookings(
    store: BookingStore = Depends(get_booking_store),
) -> dict[str, list[dict[str, Any]]]:
    """
    Debug dump of every property's bookings.

    Returns:
        dict: Property code -> list of bookings
    """
    return {
        code: [booking.to_public() for booking in bookings]
        for code, bookings in store.get_all().items()
    }


@router.get("/bookings/{property_code}")
def list_property_bookings(
    property_code: str,
    store: BookingStore = Depends(get_booking_store),
) -> dict[str, Any]:
    """
    Debug dump of one property's bookings. Unknown properties return an empty list.
    """
    return {
        "property": property_code,
        "bookings": [booking.to_public() for booking in store.get(property_code)],
    }


@router.delete("/bookings/{property_code}/{booking_id}", status_code=status.HTTP_200_OK)
def delete_booking_endpoint(
    property_code: str,
    booking_id: str,
    background_tasks: BackgroundTasks,
    admin_password: Optional[str] = Header(None, alias="X-Admin-Password"),
    store: BookingStore = Depends(get_booking_store),
    notifier: KlaviyoNotifier = Depends(get_notifier),
) -> Any:
    """
    Delete a booking. Requires the admin password in the X-Admin-Password header.

    Args:
        property_code: Property the booking is filed under
        booking_id: Booking (payment intent) ID
        admin_password: Shared admin secret

    Returns:
        dict: Confirmation, the deleted booking and the property's remaining count
    """
    try:
        result = delete_booking(store, property_code, booking_id, admin_password, ADMIN_PASSWORD)
    except BookingServiceError:
        raise
    except Exception as e:
        logger.exception(
            "booking_delete_failed",
            property_code=property_code,
            booking_id=booking_id,
            error=str(e),
        )
        background_tasks.add_task(
            notifier.alert_error,
            "BOOKING_DELETE_FAILED",
            {"error": str(e), "property_code": property_code, "booking_id": booking_id},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to delete booking"},
        )

    if not result.persisted:
        background_tasks.add_task(
            notifier.alert_error,
            "FILE_SAVE_FAILED",
            {"error": result.error, "file": str(store.path), "booking_id": booking_id},
        )

    return {
        "message": "Booking deleted successfully",
        "deletedBooking": result.booking.to_public(),
        "remainingBookings": result.remaining,
    }
