"""
JSON log lines tagged with the request's correlation id.

configure_structured_logging() installs a single stdout handler on the root logger.
CorrelationIdMiddleware (main.py) binds an id per request; records logged with
extra={"waitlist_id": ..., "signup_id": ...} carry those keys into the line.
Addresses are passed through mask_email() before they reach a log call.
"""
import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "waitlistpro_correlation_id", default=None
)

EXTRA_FIELDS = ("waitlist_id", "signup_id", "kind", "error_code")
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx")


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def mask_email(email: Optional[str]) -> str:
    """'jane.doe@x.com' -> 'jan***@x.com'."""
    if not email:
        return "***"
    local, _, domain = email.partition("@")
    prefix = local[:3]
    return f"{prefix}***@{domain}" if domain else f"{prefix}***"


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own creation time."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "correlation_id": get_correlation_id(),
            "module": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_structured_logging(log_level: str = "INFO") -> None:
    """Route every logger through one JSON handler on stdout. Unknown levels mean INFO."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
