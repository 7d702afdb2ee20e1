"""JSON logging for the shop suite.

Every record becomes one JSON line: the standard fields plus anything passed
through `extra`, so lifecycle and interaction events can be grepped or shipped
to a log aggregator as-is.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_STANDARD_FIELDS = set(logging.makeLogRecord({}).__dict__.keys()) | {"message", "asctime"}
_QUIET_LOGGERS = ("asyncio", "urllib3")


def setup_logging(level: str | int = logging.INFO) -> None:
    """Route the root logger through a single JSON handler at `level`."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """Serialize log records as compact JSON with support for `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_FIELDS and not key.startswith("_")
        }
        if extras:
            data.update(extras)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)
