"""
Logging setup for the plan_resolver namespace.

Library modules only call logging.getLogger(__name__); nothing is emitted
until a caller runs configure_logging() (or wires its own handlers).
"""

import logging
import sys
from datetime import datetime, timezone

from plan_resolver.core.config import settings

LOGGER_NAME = "plan_resolver"


def _format_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = _format_timestamp(record)
        return f"{ts} {record.levelname} [{record.name}] {record.getMessage()}"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Install one stream handler on the package logger. Safe to call twice."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or settings.log_level).upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(PrettyFormatter())

    logger.handlers = [handler]
    logger.propagate = True
    return logger
