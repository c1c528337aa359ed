from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import get_settings

# Passed through `extra=` by the filter code and copied into the JSON record
CONTEXT_FIELDS = ("locator", "faces", "placements", "scale", "output", "status_code")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value if isinstance(value, (int, float, bool)) else str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str | None = None) -> None:
    """Route every logger through one JSON stream handler on the root logger."""
    level = (level or get_settings().log_level).upper()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    # uvicorn installs its own handlers unless told otherwise; keep one format
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
