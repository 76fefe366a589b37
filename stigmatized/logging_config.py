"""JSON logging for the Stigmatized bot.

Every line on stdout is one JSON object, including uvicorn's own server
messages. Logs about one inbound event carry ``sender_id`` and ``kind`` as
top-level keys so a conversation can be followed with a single filter.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Bound by event_logger and lifted out of "context" by the formatter
EVENT_FIELDS = ("sender_id", "kind")

# Loggers that uvicorn configures with its own plain-text handlers
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in EVENT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Send the root logger and uvicorn's loggers to stdout as JSON."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    # Requests are logged by the app middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"stigmatized.{name}")


class EventLoggerAdapter(logging.LoggerAdapter):
    """Adapter for one inbound event.

    Bound event fields become record attributes; a per-call ``context``
    kwarg is merged with the remaining bound values.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        bound = dict(self.extra or {})
        extra = {name: bound.pop(name) for name in EVENT_FIELDS if name in bound}
        context = {**bound, **(kwargs.pop("context", None) or {})}
        if context:
            extra["context"] = context
        if extra:
            kwargs["extra"] = {**kwargs.get("extra", {}), **extra}
        return msg, kwargs


def event_logger(name: str, **fields: Any) -> EventLoggerAdapter:
    """Logger bound to a single inbound event (sender id, event kind)."""
    return EventLoggerAdapter(get_logger(name), fields)
