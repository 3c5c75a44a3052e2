"""Logging setup: readable console output plus a rotating JSON log file.

Modules log through ``get_logger("<area>.<module>")`` so all records
land under the ``habitkeeper`` namespace and share the handlers installed by
:func:`setup_logging`. Context goes in ``extra={...}`` and is written to the
JSON file as the ``extra`` object.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import BaseConfig

LOGGER_NAMESPACE = "habitkeeper"
LOG_FILENAME = "habitkeeper.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

_CONSOLE_FORMATS = {
    True: ("%(asctime)s %(levelname)-7s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    False: ("%(asctime)s %(levelname)s %(name)s %(message)s", "%Y-%m-%dT%H:%M:%S"),
}

# Attribute names every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


def _exception_payload(exc_info) -> dict[str, Any]:
    exc_type, exc_value, _ = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc_value) if exc_value is not None else None,
    }


class JSONFormatter(logging.Formatter):
    """Render one record per line as a JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = _exception_payload(record.exc_info)
            payload["exception"]["traceback"] = self.formatException(record.exc_info)

        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, default=str)


def _console_handler(dev_mode: bool) -> logging.Handler:
    fmt, datefmt = _CONSOLE_FORMATS[bool(dev_mode)]
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO if dev_mode else logging.WARNING)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: BaseConfig) -> logging.Logger:
    """Install console and file handlers on the ``habitkeeper`` logger.

    Calling it again (one call per created app) replaces the previous handlers
    instead of stacking new ones.
    """

    log_file = Path(config.DATA_DIR) / "logs" / LOG_FILENAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(config.DEV_MODE))
    logger.addHandler(_file_handler(log_file))

    logger.info(
        "Logging initialized",
        extra={"dev_mode": config.DEV_MODE, "log_file": str(log_file)},
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``habitkeeper.<name>``; names already in the namespace pass through."""

    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
