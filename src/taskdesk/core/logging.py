"""Structured JSON logging for the API process."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import Settings
from .context import get_request_id, get_user_id

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}
_CONTEXT_ATTRS = ("request_id", "user_id")

_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JsonLogFormatter(logging.Formatter):
    """Emit each record as one JSON object per line.

    ``defaults`` are merged into every payload (service name, environment) and
    never override the record's own fields.
    """

    def __init__(self, *, defaults: dict[str, Any] | None = None, datefmt: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self._defaults = dict(defaults or {})

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            **self._defaults,
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        if getattr(record, "user_id", None) is not None:
            payload["user_id"] = record.user_id

        extras = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and key not in _CONTEXT_ATTRS
        }
        for key, value in extras.items():
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RequestContextFilter(logging.Filter):
    """Stamp records with the current request id and authenticated user.

    Values passed explicitly through ``extra`` win over the request context.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not getattr(record, "request_id", None):
            record.request_id = get_request_id()
        if getattr(record, "user_id", None) is None:
            record.user_id = get_user_id()
        return True


def build_logging_config(settings: Settings) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for ``settings``."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    server_loggers = {
        name: {"handlers": ["stdout"], "level": level, "propagate": False}
        for name in _SERVER_LOGGERS
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonLogFormatter,
                "defaults": {
                    "service": settings.project_name,
                    "environment": settings.environment,
                },
            },
        },
        "filters": {"request_context": {"()": RequestContextFilter}},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "json",
                "filters": ["request_context"],
                "level": level,
            },
        },
        "root": {"handlers": ["stdout"], "level": level},
        "loggers": {
            **server_loggers,
            "sqlalchemy.engine": {
                "handlers": ["stdout"],
                "level": logging.INFO if settings.db_echo else logging.WARNING,
                "propagate": False,
            },
        },
    }


def configure_logging(settings: Settings) -> None:
    """Route stdlib, uvicorn and SQLAlchemy logging through the JSON handler."""
    logging.captureWarnings(True)
    logging.config.dictConfig(build_logging_config(settings))


__all__ = ["JsonLogFormatter", "RequestContextFilter", "build_logging_config", "configure_logging"]
