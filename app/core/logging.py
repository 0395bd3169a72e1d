from __future__ import annotations

import json
import logging
import logging.config
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

from app.core.config import settings

CONTEXT_FIELDS = ("request_id", "method", "path")

_RESERVED = set(logging.makeLogRecord({}).__dict__) | set(CONTEXT_FIELDS) | {"message", "asctime"}

_request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})


class RequestContextFilter(logging.Filter):
    """Copy the request bound by `request_context` onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get()
        for name in CONTEXT_FIELDS:
            setattr(record, name, context.get(name))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `extra=` fields are nested under `extra`."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "request_id", None):
            entry.update({name: getattr(record, name, None) for name in CONTEXT_FIELDS})
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        extra = {key: value for key, value in vars(record).items() if key not in _RESERVED}
        if extra:
            entry["extra"] = extra
        return json.dumps(entry, default=str)


def setup_logging() -> None:
    level = getattr(logging, settings.effective_log_level, logging.INFO)
    handler = {
        "class": "logging.StreamHandler",
        "formatter": settings.LOG_FORMAT,
        "filters": ["request_context"],
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_context": {"()": RequestContextFilter}},
            "formatters": {
                "json": {"()": JsonFormatter},
                "text": {
                    "format": "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                "uvicorn.error": {"level": level},
                "uvicorn.access": {"handlers": ["default"], "level": level, "propagate": False},
                # httpx logs every request at INFO; the Shopify client logs its own calls.
                "httpx": {"level": max(level, logging.WARNING)},
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def request_context(**context: Any) -> Iterator[dict[str, Any]]:
    token = _request_context.set(dict(context))
    try:
        yield _request_context.get()
    finally:
        _request_context.reset(token)

