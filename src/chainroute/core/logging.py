"""
Logging for chainroute.

Every module logs through a child of the ``chainroute`` logger. Payment and
provider ids passed via ``extra`` are carried into JSON output as fields.
"""

import json
import logging
import sys
from datetime import datetime, timezone

LOGGER_NAME = "chainroute"

# Record attributes promoted to top-level JSON fields when present
CONTEXT_FIELDS = ("payment_id", "provider_id", "chain")

TEXT_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: int | str = logging.INFO, json_format: bool = False) -> logging.Logger:
    """
    Configure the chainroute logger.

    Reconfiguring replaces the handler installed by a previous call, so a
    process with several clients keeps a single output stream.

    Args:
        level: Logging level (e.g., logging.INFO, "DEBUG")
        json_format: Emit one JSON object per line instead of text

    Returns:
        The configured ``chainroute`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Child logger ``chainroute.<name>``, or the root package logger."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}") if name else logging.getLogger(LOGGER_NAME)
