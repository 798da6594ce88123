"""
Error taxonomy for the booking service.

Every error carries the HTTP status it maps to. Route handlers let these
propagate and the exception handler registered in main.py renders them as
``{"error": message}``. PersistenceError and NotificationError never reach a
client: callers log and alert on them instead.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class BookingServiceError(Exception):
    """Base class for all service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookingServiceError):
    """Malformed request or inconsistent booking data (date/night mismatch)."""

    status_code = status.HTTP_400_BAD_REQUEST


class SignatureError(BookingServiceError):
    """Webhook payload failed Stripe signature verification."""

    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(BookingServiceError):
    """Missing or wrong admin credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(BookingServiceError):
    """Unknown property code or booking id."""

    status_code = status.HTTP_404_NOT_FOUND


class UpstreamError(BookingServiceError):
    """Stripe call failed. The message is Stripe's."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistenceError(BookingServiceError):
    """Bookings file could not be read or written. In-memory state stays authoritative."""

    def __init__(self, message: str, booking: Any = None) -> None:
        super().__init__(message)
        # The booking the failed mutation applied to, when there was one
        self.booking = booking


class NotificationError(BookingServiceError):
    """Klaviyo was unreachable or rejected the event."""

    status_code = status.HTTP_502_BAD_GATEWAY
