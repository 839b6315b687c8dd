"""
Operational Logging

Configures the "autorouter" logger tree: stderr for the operator and an
append-only text file for later inspection. Each line looks like
[2025-12-04T10:48:37.123Z] [INFO] message
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

LOGGER_NAME = "autorouter"


class ISO8601Formatter(logging.Formatter):
    """Formatter with UTC ISO 8601 timestamps and bracketed level names"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        line = f"[{timestamp}] [{record.levelname}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Attach console and (optionally) file handlers to the package logger.
    Calling it again replaces the previous handlers instead of stacking them.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = ISO8601Formatter()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        parent = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(parent, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
