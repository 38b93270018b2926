# logging_utils.py
"""Logging configuration helpers for release publishing."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, ClassVar, Optional

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for structured logs."""

    RESERVED_KEYS: ClassVar[frozenset[str]] = frozenset(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__
    ) | {"message"}

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            data["stack"] = record.stack_info

        for key, value in record.__dict__.items():
            if key not in self.RESERVED_KEYS and not key.startswith("_"):
                data[key] = value

        return json.dumps(data, default=str)


def _resolve_log_level(level_name: Optional[str]) -> int:
    if not level_name:
        return logging.INFO
    numeric = logging.getLevelName(level_name.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def configure_logging(level_name: Optional[str], json_enabled: bool) -> None:
    """Configure root logging handler according to settings."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(_resolve_log_level(level_name))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_enabled else logging.Formatter(_DEFAULT_FORMAT))
    root.addHandler(handler)


def get_release_logger(release_version: str) -> logging.LoggerAdapter:
    """Return the logger handed to the publisher as the host logger.

    Every record carries the release version as an extra field.
    """

    return logging.LoggerAdapter(logging.getLogger("release"), {"release": release_version})
