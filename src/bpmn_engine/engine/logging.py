"""Structured logging configuration.

Uses standard library logging with a JSON formatter. Engine modules attach
context (``process_id``, ``activity_id``, ``flow_id``) through ``extra=``; the
formatter lifts those into an ``extra`` object on each line.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

_RESERVED_LOG_RECORD_ATTRS: set[str] = set(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

# Flow, activity and gateway transitions are very chatty at DEBUG.
_CASCADE_LOGGERS = (
    "bpmn_engine.engine.flow.sequence_flow",
    "bpmn_engine.engine.flow.activity",
    "bpmn_engine.engine.flow.gateways",
)


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: TextIO | None = None, trace_cascade: bool = False) -> None:
    """Configure root logging with structured JSON output.

    Args:
        level: Root level name, e.g. ``"INFO"``.
        stream: Destination; defaults to stderr so CLI output on stdout stays parseable.
        trace_cascade: Keep per-flow DEBUG records even when ``level`` is DEBUG.
    """

    root = logging.getLogger()

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    cascade_level = root.level if trace_cascade else max(root.level, logging.INFO)
    for name in _CASCADE_LOGGERS:
        logging.getLogger(name).setLevel(cascade_level)
