"""
Prometheus metrics for monitoring bookings, webhooks, storage and outbound calls.

This module defines all Prometheus metrics used throughout the application for
observability and monitoring. Metrics are exposed via the /metrics endpoint for
scraping by Prometheus.

Example:
    >>> from hrzn_bookings.metrics import bookings_created
    >>> bookings_created.labels(property_code="cos1").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

bookings_created = Counter(
    "hrzn_bookings_created_total",
    "Total number of bookings created from confirmed payments",
    ["property_code"],
)
"""
Counter for bookings created by the reconciler (re-deliveries excluded).

Labels:
    property_code: Internal property code (e.g., cos1)
"""

stored_bookings = Gauge(
    "hrzn_stored_bookings",
    "Number of bookings currently held in the store",
    ["property_code"],
)
"""Gauge for bookings per property after the latest mutation or load."""

webhook_events = Counter(
    "hrzn_webhook_events_total",
    "Total Stripe webhook deliveries",
    ["event_type", "status"],
)
"""
Counter for webhook deliveries.

Labels:
    event_type: Stripe event type, or "unknown" when the signature failed
    status: processed, ignored, rejected or failed
"""

# =============================================================================
# Storage Metrics
# =============================================================================

store_writes = Counter(
    "hrzn_store_writes_total",
    "Total writes of the bookings file",
    ["operation", "status"],
)
"""
Counter for bookings file writes.

Labels:
    operation: append or remove
    status: success or failure
"""

store_write_duration = Histogram(
    "hrzn_store_write_duration_seconds",
    "Time spent writing the bookings file in seconds",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, float("inf")),
)

# =============================================================================
# Outbound Metrics
# =============================================================================

payment_requests = Counter(
    "hrzn_payment_requests_total",
    "Total Stripe API calls made",
    ["operation", "status"],
)
"""
Counter for Stripe API calls.

Labels:
    operation: payment_intent or checkout_session
    status: success or failure
"""

notifications_sent = Counter(
    "hrzn_notifications_total",
    "Total Klaviyo events attempted",
    ["metric", "status"],
)
"""
Counter for Klaviyo notification attempts.

Labels:
    metric: Klaviyo metric name (e.g., "New Booking Alert")
    status: success, failure or skipped
"""

calendar_renders = Counter(
    "hrzn_calendar_renders_total",
    "Total iCalendar feeds rendered",
    ["property_code"],
)
