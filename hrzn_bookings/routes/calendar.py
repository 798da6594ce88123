"""
Per-property iCalendar feeds.

External calendars subscribe to ``/calendar/{property_code}.ics`` and block
out the booked dates. Unknown properties get a valid, empty calendar.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse, Response

from hrzn_bookings.db.store import BookingStore
from hrzn_bookings.dependencies import get_booking_store, get_notifier
from hrzn_bookings.metrics import calendar_renders
from hrzn_bookings.network.notifications import KlaviyoNotifier
from hrzn_bookings.services.calendar import render_calendar

logger = structlog.get_logger(__name__)

router = APIRouter()

CALENDAR_MEDIA_TYPE = "text/calendar"


@router.get("/calendar/{property_code}.ics", response_class=Response)
def property_calendar(
    property_code: str,
    background_tasks: BackgroundTasks,
    store: BookingStore = Depends(get_booking_store),
    notifier: KlaviyoNotifier = Depends(get_notifier),
) -> Response:
    """
    Render a property's bookings as an iCalendar feed.

    Returns:
        Response: VCALENDAR text with Content-Type text/calendar
    """
    bookings = store.get(property_code)

    try:
        content = render_calendar(property_code, bookings)
    except Exception as e:
        logger.exception("calendar_generation_failed", property_code=property_code, error=str(e))
        background_tasks.add_task(
            notifier.alert_error,
            "CALENDAR_GENERATION_FAILED",
            {"error": str(e), "property_code": property_code},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate calendar"},
        )

    calendar_renders.labels(property_code=property_code).inc()
    logger.debug("calendar_rendered", property_code=property_code, events=len(bookings))
    return Response(content=content, media_type=CALENDAR_MEDIA_TYPE)
