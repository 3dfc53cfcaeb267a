"""Logging configuration for the Veil Inbox service.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers and formatters once at startup. Two formats are available: a plain
console line for development and one JSON object per line for log shippers.
"""

from __future__ import annotations

import logging
import logging.config
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger


class JSONFormatter(jsonlogger.JsonFormatter):
    """Render log records as single-line JSON documents.

    Fields passed through ``extra=`` are merged into the document by the base
    formatter.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def get_logging_config(level: str = "INFO", fmt: str = "plain") -> dict[str, Any]:
    """Build a ``dictConfig`` mapping for the requested level and format."""
    level = level.upper()
    formatter = "json" if fmt.lower() == "json" else "plain"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            },
            "json": {
                "()": JSONFormatter,
                "fmt": "%(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "veil_inbox": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def configure_logging(level: str = "INFO", fmt: str = "plain") -> None:
    """Apply the logging configuration for the whole process."""
    logging.config.dictConfig(get_logging_config(level, fmt))
    logging.getLogger(__name__).info("Logging configured (level=%s, format=%s)", level, fmt)
