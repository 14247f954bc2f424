"""DNS Monitor: Structured JSON Logging.

One JSON object per line on stdout. Check context (domain, snapshot id,
write path ...) is passed through ``extra`` and lifted into top-level keys.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from dns_monitor.config import settings

EXTRA_FIELDS = (
    "domain",
    "snapshot_id",
    "write_path",
    "record_count",
    "duration_ms",
    "status_code",
)


class JSONFormatter(logging.Formatter):
    """Produces structured JSON log lines for production observability."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class DomainLogger(logging.LoggerAdapter):
    """Stamps every line with the domain under check.

    Call-site ``extra`` is merged on top instead of replacing the adapter's.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with structured JSON handler."""
    logger = logging.getLogger(f"dns_monitor.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger


def for_domain(logger: logging.Logger, domain: str) -> DomainLogger:
    return DomainLogger(logger, {"domain": domain})
