"""
Logging setup

Plain text logging for development and JSON-formatted records for log
aggregation. Service modules log through ``logging.getLogger(__name__)``
and attach context (content_id, locale, operation...) via ``extra``.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

from app.config import settings

PLAIN_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Context variable for request ID, set by the hosting request handler
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Extra attributes copied into JSON records when present
CONTEXT_FIELDS = ("operation", "content_id", "locale", "user_id", "actor_id", "duration_ms")


class RequestIdFilter(logging.Filter):
    """Logging filter to add request ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        return True


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a format suitable for log aggregation systems
    like ELK Stack, Loki, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", ""),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Install a single root handler using the configured level and format."""
    level = (level or settings.log_level).upper()
    fmt = fmt or settings.log_format

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if fmt == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    if settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)  # Logs SQL statements
        logging.getLogger("sqlalchemy.pool").setLevel(logging.INFO)  # Logs connection pool checkouts

    return handler
