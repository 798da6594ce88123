"""
Unit tests for the structlog processors in logging_config.
"""

from __future__ import annotations

import pytest
import structlog

from hrzn_bookings.logging_config import (
    SERVICE_NAME,
    add_service_name,
    redact_secrets,
    setup_logging,
)


@pytest.mark.unit
def test_redact_secrets_masks_sensitive_keys() -> None:
    event = {"event": "payment_intent_created", "client_secret": "pi_1_secret", "amount": 3150}

    result = redact_secrets(None, "info", event)

    assert result["client_secret"] == "[redacted]"
    assert result["amount"] == 3150


@pytest.mark.unit
def test_add_service_name_keeps_explicit_value() -> None:
    assert add_service_name(None, "info", {"event": "x"})["service"] == SERVICE_NAME
    assert add_service_name(None, "info", {"service": "other"})["service"] == "other"


@pytest.mark.unit
def test_setup_logging_renders_json_lines(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that configured loggers emit JSON with service, level and redaction applied."""
    setup_logging()
    logger = structlog.get_logger("test")

    logger.info("webhook_received", event_type="payment_intent.succeeded", signature="t=1,v1=abc")

    out = capsys.readouterr().out
    assert '"event": "webhook_received"' in out
    assert '"service": "hrzn-bookings"' in out
    assert '"level": "info"' in out
    assert "v1=abc" not in out
