"""JSON logging for the gamification engine.

Everything goes through Loguru. Records from the standard library (SQLAlchemy,
aiosqlite, alembic) are forwarded by :class:`StdlibBridge`, and each line is
written as one JSON object carrying the service metadata, the keyword context
bound at the call site and, when a span is active, its trace ids.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict

from loguru import logger
from opentelemetry import trace

# Attributes every LogRecord carries; anything else was passed via ``extra=``.
_STANDARD_RECORD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


class StdlibBridge(logging.Handler):
    """Forward stdlib records to Loguru, keeping their ``extra`` fields."""

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        context = {key: value for key, value in vars(record).items() if key not in _STANDARD_RECORD_KEYS}
        context.setdefault("stdlib_logger", record.name)
        logger.bind(**context).opt(depth=6, exception=record.exc_info).log(
            level, record.getMessage().replace("{", "{{").replace("}", "}}")
        )


class JsonSink:
    """Loguru sink rendering one JSON document per message."""

    def __init__(self, *, service_name: str, environment: str, version: str) -> None:
        self._static = {"service": service_name, "environment": environment, "version": version}

    def __call__(self, message: "logger.Message") -> None:
        record = message.record
        payload: Dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name.lower(),
            "message": record["message"],
            "logger": record["name"],
            **self._static,
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            payload["trace_id"] = format(span_context.trace_id, "032x")
            payload["span_id"] = format(span_context.span_id, "016x")

        payload.update(record["extra"])
        if record["exception"] is not None:
            payload["exception"] = repr(record["exception"].value)

        sys.stdout.write(json.dumps(payload, default=str) + "\n")


def configure_logging(*, service_name: str, environment: str, version: str, level: str = "INFO") -> None:
    """Replace Loguru's default sink with :class:`JsonSink` and bridge stdlib logging."""

    logger.remove()
    logger.add(
        JsonSink(service_name=service_name, environment=environment, version=version),
        level=level,
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[StdlibBridge()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
