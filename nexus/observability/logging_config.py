"""
Logging setup for the CLI and dashboard.

Modules log through logging.getLogger(__name__) with an event name as the
message and structured fields in `extra`:

    logger.info("report_submitted", extra={"tier": "Tier A: Economic Snapshot"})

NEXUS_ENV=production writes one JSON object per line to stdout; any other
value writes colored text to stderr. The current wizard session id lives in
thread-local storage and is stamped on every record by ContextFilter, so a
single form session can be followed through the logs.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

_local = threading.local()


def set_session_id(session_id: str) -> None:
    _local.session_id = session_id


def get_session_id() -> Optional[str]:
    return getattr(_local, "session_id", None)


def clear_session_id() -> None:
    _local.session_id = None


class ContextFilter(logging.Filter):
    """Adds session_id to records that don't carry one explicitly."""

    def filter(self, record: logging.LogRecord) -> bool:
        session_id = get_session_id()
        if session_id and not hasattr(record, "session_id"):
            record.session_id = session_id  # type: ignore[attr-defined]
        return True


# Attributes every LogRecord has; anything else arrived through `extra`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
    for key, value in record.__dict__.items():
        if key not in _RECORD_ATTRS and not key.startswith("_"):
            yield key, value


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update((key, _jsonable(value)) for key, value in _extra_fields(record))
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[41m",
}
_RESET = "\033[0m"


class DevFormatter(logging.Formatter):
    """
    `[HH:MM:SS] LEVEL    logger: event [key=value ...]`

    Only the fields in SHOWN_FIELDS are printed inline; JSON output
    carries all of them.
    """

    SHOWN_FIELDS = (
        "session_id", "step", "tier", "country", "epoch",
        "count", "intent", "model", "latency_ms", "error",
    )

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in self.SHOWN_FIELDS
            if getattr(record, key, None) is not None
        ]
        line = (
            f"{_RESET}[{self.formatTime(record, '%H:%M:%S')}] "
            f"{color}{record.levelname:<8}{_RESET} "
            f"{record.name}: {record.getMessage()}"
        )
        if pairs:
            line += f" [{' '.join(pairs)}]"
        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


# Provider SDKs log every HTTP request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


def configure_logging(env: Optional[str] = None, level: int = logging.INFO) -> None:
    """Install a single root handler for `env` (NEXUS_ENV, else development)."""
    env = (env or os.environ.get("NEXUS_ENV", "development")).strip().lower()

    if env == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(DevFormatter())
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
