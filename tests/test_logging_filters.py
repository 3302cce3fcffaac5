"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from ipweather.core.config import LogSettings
from ipweather.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    _build_handlers,
    clear_request_id,
    scrub_text,
    set_request_id,
)


@pytest.fixture
def captured():
    """A logger writing JSON through both filters into a buffer."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    yield logger, stream
    logger.handlers.clear()


def test_sensitive_filter_redacts_provider_keys(captured):
    """Ensure provider keys never reach the output."""
    logger, stream = captured

    logger.info(
        "weather.request",
        extra={
            "api_key": "wu-secret-123",
            "appid": "owm-secret-456",
            "token": "ipinfo-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "wu-secret-123" not in output
    assert "owm-secret-456" not in output
    assert "ipinfo-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_upstream_urls(captured):
    """URLs carry the weather key as a path segment."""
    logger, stream = captured

    logger.info(
        "upstream",
        extra={"url": "http://api.wunderground.com/api/wu-secret/conditions/q/autoip.json"},
    )

    assert "wu-secret" not in stream.getvalue()


def test_sensitive_filter_allows_safe_fields(captured):
    """Verify safe fields pass through unmodified."""
    logger, stream = captured

    logger.info(
        "weather.cache_hit",
        extra={
            "cache_key": "48.8566,2.3522",
            "request_path": "/France/Paris",
            "status_code": 200,
            "duration_ms": 150.5,
        },
    )

    data = json.loads(stream.getvalue())

    assert data["cache_key"] == "48.8566,2.3522"
    assert data["request_path"] == "/France/Paris"
    assert data["status_code"] == 200
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts(captured):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = captured

    logger.info(
        "nested_event",
        extra={
            "params": {"key": "maps-secret", "address": "Paris,France"},
        },
    )

    output = stream.getvalue()

    assert "maps-secret" not in output
    assert "Paris,France" in output


def test_request_id_is_attached_from_context(captured):
    logger, stream = captured
    set_request_id("req-abc")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("stdout", [logging.StreamHandler]),
        ("file", [logging.FileHandler]),
        ("both", [logging.FileHandler, logging.StreamHandler]),
    ],
)
def test_build_handlers_by_output(tmp_path, output: str, expected: list[type]):
    log_settings = LogSettings(output=output, file_path=str(tmp_path / "logs" / "app.log"))

    handlers = _build_handlers(log_settings)
    try:
        assert len(handlers) == len(expected)
        for handler, handler_type in zip(handlers, expected):
            assert isinstance(handler, handler_type)
    finally:
        for handler in handlers:
            handler.close()

    if output != "stdout":
        assert (tmp_path / "logs").is_dir()


@pytest.mark.parametrize(
    ("text", "secret"),
    [
        ("GET http://ipinfo.io/8.8.8.8/json?token=ipinfo-tok", "ipinfo-tok"),
        ("https://maps.googleapis.com/maps/api/geocode/json?address=Paris,France&key=AIzaSyXYZ", "AIzaSyXYZ"),
        ("http://api.wunderground.com/api/0123456789abcdef/conditions/q/autoip.json", "0123456789abcdef"),
    ],
)
def test_scrub_text_masks_credentials_in_urls(text: str, secret: str):
    scrubbed = scrub_text(text)

    assert secret not in scrubbed
    assert "[REDACTED]" in scrubbed


def test_message_text_is_scrubbed(captured):
    logger, stream = captured

    logger.warning("upstream failed: http://ipinfo.io/1.1.1.1/json?token=abc123")

    assert "abc123" not in stream.getvalue()
