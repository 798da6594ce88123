"""
iCalendar export of a property's bookings.

Calendar tools (Airbnb, VRBO, Google Calendar) subscribe to these feeds to
block out booked dates. UIDs are derived from the booking ID so clients can
deduplicate events across refreshes.
"""

from __future__ import annotations

from typing import Iterable

from icalendar import Calendar, Event

from hrzn_bookings.schemas.bookings import Booking
from hrzn_bookings.utils.datetime import start_of_day_utc

UID_DOMAIN = "hrzn.com"
SUMMARY_SUFFIX = "Direct Booking"
SOURCE = "HRZN Website"


def event_uid(booking: Booking) -> str:
    return f"{booking.id}@{UID_DOMAIN}"


def _description(booking: Booking) -> str:
    return "\n".join(
        [
            f"Guest: {booking.guest_name}",
            f"Email: {booking.email}",
            f"Phone: {booking.phone}",
            f"Guests: {booking.guests}",
            f"Total: ${booking.total / 100:.2f}",
            f"Payment ID: {booking.payment_id}",
            f"Source: {SOURCE}",
        ]
    )


def render_calendar(property_code: str, bookings: Iterable[Booking]) -> str:
    """
    Render bookings as an iCalendar document.

    One VEVENT per booking, spanning check-in to check-out at midnight UTC.
    Free text (guest name, contact details, property name) is escaped by
    icalendar, so commas, semicolons, backslashes and newlines cannot break
    the line format.

    Args:
        property_code: Property the feed is for (used in PRODID)
        bookings: Bookings to include, in display order

    Returns:
        str: The VCALENDAR document (CRLF line endings)

    Example:
        >>> text = render_calendar("cos1", [])
        >>> text.startswith("BEGIN:VCALENDAR")
        True
    """
    cal = Calendar()
    cal.add("prodid", f"-//HRZN//Direct Bookings {property_code.upper()}//EN")
    cal.add("version", "2.0")

    for booking in bookings:
        event = Event()
        event.add("uid", event_uid(booking))
        event.add("dtstamp", booking.created_at)
        event.add("dtstart", start_of_day_utc(booking.check_in))
        event.add("dtend", start_of_day_utc(booking.check_out))
        event.add("summary", f"{booking.guest_name} - {SUMMARY_SUFFIX}")
        event.add("description", _description(booking))
        event.add("location", booking.property_name)
        cal.add_component(event)

    return cal.to_ical().decode("utf-8")
