"""Structured logging for the provider and its HTTP surface.

Every handler installed by ``configure_logging`` carries two filters:

- ``RequestIdFilter`` copies the correlation id of the current request
  (a contextvar set by the HTTP middleware) onto each record;
- ``SensitiveDataFilter`` masks credentials and user content (texts read
  aloud, image prompts, generated payloads) in the record extras.

Records are rendered one JSON object per line unless ``LOG_FORMAT=plain``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from openai_extension.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

# Credentials and user content never leave the process through logs.
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # credentials
        "api_key",
        "openai_api_key",
        "x-api-key",
        "app_api_keys",
        "authorization",
        "openai-organization",
        "org_id",
        "token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        # user content and generated output
        "text",
        "input",
        "prompt",
        "instructions",
        "b64_json",
        "body",
    }
)

# Attributes every LogRecord has; anything else on a record is an extra.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

# Third-party loggers that are too chatty at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")

_current_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _current_request_id.set(request_id)


def get_request_id() -> str | None:
    """Correlation id of the request being handled, if any."""
    return _current_request_id.get()


def clear_request_id() -> None:
    _current_request_id.set(None)


class Redactor:
    """Masks values stored under sensitive keys, at any nesting depth.

    Keys are compared case-insensitively, so ``Authorization`` in a header
    mapping is caught as well as an ``authorization`` extra. Raw bytes are
    summarised by length instead of being dumped.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(key.lower() for key in keys)

    def is_sensitive(self, key: Any) -> bool:
        return str(key).lower() in self.sensitive_keys

    def scrub(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: REDACTED if self.is_sensitive(k) else self.scrub(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub(item) for item in value)
        if isinstance(value, (bytes, bytearray)):
            return f"<{len(value)} bytes>"
        return value

    def extras(self, record: logging.LogRecord) -> dict[str, Any]:
        """Scrubbed copy of the user-supplied attributes of ``record``."""
        return {
            key: REDACTED if self.is_sensitive(key) else self.scrub(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub record extras in place so every formatter sees masked values."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: fixed fields first, then the extras.

    The formatter scrubs again on its own so it stays safe on handlers
    that were set up without ``SensitiveDataFilter``.
    """

    def __init__(self, *, sensitive_keys: Iterable[str] | None = None, ensure_ascii: bool = True) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(self.redactor.extras(record))

        request_id = entry.get("request_id") or get_request_id()
        if request_id:
            entry["request_id"] = request_id
        else:
            entry.pop("request_id", None)

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/openai_extension.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes > 0:
        return RotatingFileHandler(
            path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(path, encoding="utf-8")


def _build_formatter(log_settings: LogSettings) -> logging.Formatter:
    if log_settings.format.lower() == "plain":
        return logging.Formatter("%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s")
    return JsonFormatter()


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single filtered handler on the root logger.

    Args:
        log_settings: Logging section of the settings; the global settings
            are used when omitted.
    """
    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(_build_formatter(cfg))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # uvicorn installs its own handlers; avoid duplicate lines
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
