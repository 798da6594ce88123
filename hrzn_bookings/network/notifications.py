"""
Klaviyo event notifications.

Booking alerts and system-error alerts are sent as Klaviyo events against a
single alert profile. Delivery is fire-and-forget: failures are logged and
counted, never raised to the caller, never retried.
"""

import logging
from typing import Any

import requests

from hrzn_bookings.config import ALERT_EMAIL, KLAVIYO_API_KEY
from hrzn_bookings.errors import NotificationError
from hrzn_bookings.metrics import notifications_sent
from hrzn_bookings.schemas.bookings import Booking
from hrzn_bookings.utils.datetime import utc_now

logger = logging.getLogger(__name__)

KLAVIYO_EVENTS_URL = "https://a.klaviyo.com/api/events/"
KLAVIYO_REVISION = "2024-10-15"

BOOKING_ALERT_METRIC = "New Booking Alert"
ERROR_ALERT_METRIC = "System Error Alert"


class KlaviyoNotifier:
    """
    Sends events to the Klaviyo events API.

    Example:
        >>> notifier = KlaviyoNotifier(api_key="pk_...", profile_email="ops@example.com")
        >>> notifier.alert_error("FILE_SAVE_FAILED", {"error": "disk full"})
        True
    """

    def __init__(self, api_key: str, profile_email: str, timeout: float = 10):
        self.api_key = api_key
        self.profile_email = profile_email
        self.timeout = timeout

    def send_event(self, metric_name: str, properties: dict[str, Any]) -> bool:
        """
        Send one event to Klaviyo.

        Args:
            metric_name: Klaviyo metric the event is recorded under
            properties: Event properties (must be JSON serializable)

        Returns:
            bool: True if Klaviyo accepted the event, False otherwise
        """
        if not self.api_key:
            logger.debug("Klaviyo API key not configured, skipping %s", metric_name)
            notifications_sent.labels(metric=metric_name, status="skipped").inc()
            return False

        try:
            self._post(metric_name, properties)
        except NotificationError as e:
            logger.error("Failed to send %s to Klaviyo: %s", metric_name, e.message)
            notifications_sent.labels(metric=metric_name, status="failure").inc()
            return False

        logger.info("%s sent to Klaviyo", metric_name)
        notifications_sent.labels(metric=metric_name, status="success").inc()
        return True

    def booking_created(self, booking: Booking) -> bool:
        """Send the new booking alert."""
        return self.send_event(
            BOOKING_ALERT_METRIC,
            {
                "guest_name": booking.guest_name,
                "guest_email": booking.email,
                "guest_phone": booking.phone,
                "check_in": booking.check_in.isoformat(),
                "check_out": booking.check_out.isoformat(),
                "nights": booking.nights,
                "guests": booking.guests,
                "total_amount": booking.total,
                "property_name": booking.property_name,
                "property_code": booking.property_code,
                "listing_id": booking.listing_id,
                "payment_id": booking.payment_id,
                "payment_type": booking.payment_type.value,
                "booking_id": booking.id,
                "created_at": booking.created_at.isoformat(),
            },
        )

    def alert_error(self, error_type: str, details: dict[str, Any]) -> bool:
        """Send a system error alert, e.g. ``alert_error("FILE_SAVE_FAILED", {...})``."""
        return self.send_event(
            ERROR_ALERT_METRIC,
            {"error_type": error_type, "timestamp": utc_now().isoformat(), **details},
        )

    def _post(self, metric_name: str, properties: dict[str, Any]) -> None:
        payload = {
            "data": {
                "type": "event",
                "attributes": {
                    "profile": {
                        "data": {"type": "profile", "attributes": {"email": self.profile_email}}
                    },
                    "metric": {"data": {"type": "metric", "attributes": {"name": metric_name}}},
                    "properties": properties,
                },
            }
        }
        headers = {
            "Authorization": f"Klaviyo-API-Key {self.api_key}",
            "Content-Type": "application/json",
            "revision": KLAVIYO_REVISION,
        }

        try:
            response = requests.post(
                KLAVIYO_EVENTS_URL, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise NotificationError(str(e)) from e

        if not response.ok:
            raise NotificationError(f"status={response.status_code}, response={response.text}")


notifier = KlaviyoNotifier(api_key=KLAVIYO_API_KEY, profile_email=ALERT_EMAIL)
