from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from hrzn_bookings.config import DEBUG, LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

SERVICE_NAME = "hrzn-bookings"

# Never written to logs, even when passed as event keys
REDACTED_KEYS = frozenset({"client_secret", "signature", "admin_password", "api_key"})


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    return event_dict


def add_service_name(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging() -> None:
    """
    Configure stdlib logging and structlog for the booking service.

    Route, service and store modules log through structlog with event-style
    keys; the Stripe and Klaviyo clients use stdlib loggers, which share the
    same level and stream.

    LOG_LEVEL=DEBUG renders colored console output, anything else renders
    one JSON object per line.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )

    for chatty in ("urllib3", "requests", "stripe", "uvicorn.access"):
        logging.getLogger(chatty).setLevel(logging.WARNING)

    renderer = cast(
        Processor,
        structlog.dev.ConsoleRenderer(colors=True)
        if DEBUG
        else structlog.processors.JSONRenderer(),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_service_name,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
