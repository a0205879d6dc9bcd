"""
Logging setup for the UniShare API.

Production writes one JSON object per line; everywhere else gets a short
text line. Both carry the X-Request-ID of the request being served, read from
request_id_var (set by RequestIdMiddleware).

Usage:
    from unishare.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Resource blocked", extra={"slug": resource.slug})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

SERVICE_NAME = "unishare"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Third-party loggers held at WARNING
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosmtplib")

# Standard LogRecord attributes; anything else on a record came from extra=
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "request_id"}

_base_factory = logging.getLogRecordFactory()


def _record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_factory(*args, **kwargs)
    record.request_id = request_id_var.get() or "-"  # type: ignore[attr-defined]
    return record


class JsonFormatter(logging.Formatter):
    """JSON lines; UUIDs, datetimes and enums in extra= are stringified."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and value is not None
        )
        return json.dumps(entry, default=str)


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Configure the root logger. Safe to call again (app reloads, test clients).

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR)
        environment: 'production' switches to JSON output
        debug: Forces DEBUG regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    logging.setLogRecordFactory(_record_factory)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if environment == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s %(message)s",
            datefmt="%H:%M:%S",
        ))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Module logger. Structured fields go through extra=:
        logger.warning("Slug collision", extra={"slug": slug, "attempt": n})
    """
    return logging.getLogger(name)
