from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import sys
from typing import IO, Iterable

from .config import settings

WINDOW_FIELDS = ("event", "counter", "count", "threshold", "window_seconds")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the window fields passed via ``extra``."""

    def __init__(self, fields: Iterable[str] = WINDOW_FIELDS) -> None:
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        payload.update(
            (field, getattr(record, field))
            for field in self.fields
            if getattr(record, field, None) is not None
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level: str | None = None, *, stream: IO[str] | None = None) -> bool:
    """Attach a JSON handler to the ``windowguard`` logger.

    Returns False when a handler is already attached. ``level`` defaults to
    ``settings.log_level``; unknown names mean INFO.
    """
    package_logger = logging.getLogger("windowguard")
    if package_logger.handlers:
        return False

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    level_name = (level or settings.log_level).upper()
    package_logger.setLevel(getattr(logging, level_name, settings.log_level_value))
    package_logger.addHandler(handler)
    return True
