from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict

# Keys copied from `extra={...}` into the JSON payload when present.
EXTRA_FIELDS = (
    "event",
    "game",
    "game_id",
    "count",
    "batch",
    "processed",
    "total",
    "step",
    "shape",
    "score",
    "top_k",
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "code",
    "output_path",
    "exception_type",
)


class JsonFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Only a fixed set of `extra` attributes is emitted so that arbitrary
    LogRecord internals never leak into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in EXTRA_FIELDS:
            if hasattr(record, attr):
                log_payload[attr] = getattr(record, attr)

        if record.exc_info:
            log_payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_payload, ensure_ascii=False, default=str)


def configure_logger(name: str = "game_recommender", level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with JSON formatting.

    Calling it twice for the same name returns the same logger with a single handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    logger.propagate = False
    return logger
