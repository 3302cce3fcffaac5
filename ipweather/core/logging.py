"""Structured logging for the service.

- request_id travels in a contextvar and is stamped on every record
- provider credentials are scrubbed from record extras and from free text
  (upstream URLs carry keys as query parameters or path segments)
- output is JSON or plain text, to stdout, a rotating file, or both
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from ipweather.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "key",
        "appid",
        "token",
        "ipinfo_token",
        "geocode_api_key",
        "weather_api_key",
        "authorization",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        "url",
        "upstream_url",
    }
)

# key=..., token=..., appid=... inside URLs or exception messages
_CREDENTIAL_PARAM = re.compile(r"(?i)\b(key|token|appid|api_key)=([^&\s'\"]+)")
# Weather Underground puts the key right after /api/
_WU_PATH_KEY = re.compile(r"(/api/)([A-Za-z0-9]{8,})(/)")

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def scrub_text(text: str) -> str:
    """Mask credentials embedded in free text such as URLs.

    Examples:
        >>> scrub_text("GET http://ipinfo.io/8.8.8.8/json?token=abc123")
        'GET http://ipinfo.io/8.8.8.8/json?token=[REDACTED]'
        >>> scrub_text("http://api.wunderground.com/api/0123456789abcdef/conditions")
        'http://api.wunderground.com/api/[REDACTED]/conditions'
    """
    text = _CREDENTIAL_PARAM.sub(lambda m: f"{m.group(1)}={REDACTED}", text)
    return _WU_PATH_KEY.sub(lambda m: f"{m.group(1)}{REDACTED}{m.group(3)}", text)


def redact(value: Any, sensitive_keys: frozenset[str]) -> Any:
    """Recursively mask sensitive mapping keys and credentials in strings."""
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in sensitive_keys else redact(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v, sensitive_keys) for v in value)
    if isinstance(value, str):
        return scrub_text(value)
    return value


def record_extras(record: logging.LogRecord, sensitive_keys: frozenset[str]) -> dict[str, Any]:
    """Return the extra= fields of record, redacted.

    Args:
        record: Record being emitted.
        sensitive_keys: Lower-cased field names whose values are masked.

    Returns:
        Mapping of extra field name to its safe value.
    """
    extras: dict[str, Any] = {}
    for name, value in vars(record).items():
        if name in _RECORD_ATTRS or name.startswith("_"):
            continue
        extras[name] = REDACTED if name.lower() in sensitive_keys else redact(value, sensitive_keys)
    return extras


class RequestIdFilter(logging.Filter):
    """Stamp the current request id on records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact extras and the rendered message in place, for every formatter."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for name, value in record_extras(record, self.sensitive_keys).items():
            setattr(record, name, value)
        if isinstance(record.msg, str):
            record.msg = scrub_text(record.msg)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, extras."""

    def __init__(self, *, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": scrub_text(record.getMessage()),
        }
        payload.update(record_extras(record, self.sensitive_keys))
        if payload.get("request_id") is None:
            request_id = get_request_id()
            if request_id:
                payload["request_id"] = request_id
            else:
                payload.pop("request_id", None)
        if record.exc_info:
            payload["exc_info"] = scrub_text(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


def _build_handlers(log_settings: LogSettings) -> list[logging.Handler]:
    """Create the handlers selected by LOG_OUTPUT.

    Args:
        log_settings: Resolved LOG_* settings.

    Returns:
        A file handler (rotating unless LOG_MAX_BYTES is unset), a stdout
        handler, or both, in that order.
    """
    output = log_settings.output.lower()
    handlers: list[logging.Handler] = []

    if output in ("file", "both"):
        file_path = Path(log_settings.file_path or "logs/ipweather.log")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if log_settings.max_bytes:
            handlers.append(
                RotatingFileHandler(
                    file_path,
                    maxBytes=log_settings.max_bytes,
                    backupCount=log_settings.backup_count,
                    encoding="utf-8",
                )
            )
        else:
            handlers.append(logging.FileHandler(file_path, encoding="utf-8"))

    if output != "file":
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the configured handlers on the root logger.

    Args:
        log_settings: LOG_* settings; the global settings when omitted.
    """
    cfg = log_settings or settings.log

    if cfg.format.lower() == "plain":
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
    else:
        formatter = JsonFormatter()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    for handler in _build_handlers(cfg):
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
