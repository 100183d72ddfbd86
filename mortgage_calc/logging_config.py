"""Logging setup for the mortgage calculator.

Modules obtain their logger with ``get_logger(__name__)``; the command-line
interface and the web app call ``configure_logging`` once at startup. Both
honour the following environment variables:

``MORTGAGE_CALC_LOG_LEVEL``
    Log level name, ``WARNING`` by default.
``MORTGAGE_CALC_LOG_FILE``
    Optional path of a rotating log file.
``MORTGAGE_CALC_STRUCTURED_LOGS``
    ``1``/``true``/``yes`` to emit one JSON object per record.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER = "mortgage_calc"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LOG_LEVEL = "MORTGAGE_CALC_LOG_LEVEL"
ENV_LOG_FILE = "MORTGAGE_CALC_LOG_FILE"
ENV_STRUCTURED_LOGS = "MORTGAGE_CALC_STRUCTURED_LOGS"

_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Formatter that renders each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        # fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                data[key] = value
        return json.dumps(data, default=str)


def _level_from(level: Optional[str]) -> int:
    name = level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL
    return getattr(logging, name.upper(), logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name``.

    Loggers of the package's modules propagate to the ``mortgage_calc`` logger,
    so a single ``configure_logging`` call controls all of them.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    structured: bool = False,
    stream=None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """Install handlers on the package logger.

    Calling it again replaces the handlers installed by the previous call.
    Log output goes to ``stderr`` by default so it never mixes with the
    schedules and summaries printed on ``stdout``.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    log_level = _level_from(level)
    logger.setLevel(log_level)
    logger.propagate = False

    use_structured = structured or os.getenv(ENV_STRUCTURED_LOGS, "").lower() in (
        "1",
        "true",
        "yes",
    )
    if use_structured:
        formatter: logging.Formatter = StructuredFormatter(datefmt=DEFAULT_DATE_FORMAT)
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(log_level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    log_file_path = log_file or os.getenv(ENV_LOG_FILE)
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
