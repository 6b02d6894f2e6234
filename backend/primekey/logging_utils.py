from __future__ import annotations

"""Structured JSON logging helpers with search-scoped context."""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Mapping

# Fields pushed by log_context() and merged into every adapter's extras.
# Each thread or task sees its own snapshot; snapshots are never mutated.
_CONTEXT: ContextVar[Mapping[str, object]] = ContextVar(
    "primekey_log_context", default=MappingProxyType({})
)

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class ContextAwareAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        context = dict(_CONTEXT.get())
        context.update(self.extra or {})
        context.update(kwargs.get("extra") or {})
        kwargs["extra"] = context
        return msg, kwargs


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - logging override
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_json_logging(level: int = logging.INFO) -> None:
    """Route application logs through a JSON formatter with contextual extras."""

    base_logger = logging.getLogger()
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    base_logger.handlers = [handler]
    base_logger.setLevel(level)


def _merged(fields: Dict[str, object]) -> Mapping[str, object]:
    merged = dict(_CONTEXT.get())
    merged.update({k: v for k, v in fields.items() if v is not None})
    return MappingProxyType(merged)


def set_log_context(**fields: object) -> None:
    """Update the logging context of the current thread or task."""

    _CONTEXT.set(_merged(fields))


@contextmanager
def log_context(**fields: object):
    """Temporarily push contextual fields (search_id, key_bits, etc.)."""

    token = _CONTEXT.set(_merged(fields))
    try:
        yield
    finally:
        _CONTEXT.reset(token)


def get_logger(name: str) -> logging.LoggerAdapter:
    return ContextAwareAdapter(logging.getLogger(name), extra={})
