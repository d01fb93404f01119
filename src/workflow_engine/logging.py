"""JSON logs for workflow transitions and store activity.

Every engine log line is one JSON object on stderr, so the CLI can keep
stdout for its own JSON output. Context such as entity ids, states, events
and versions is passed through ``extra=`` and lands under ``"extra"``.
State and event members are written by name, the same way the entity store
and audit records spell them.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TextIO

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_LOG_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"asctime", "message", "taskName"}


def _json_default(value: object) -> object:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    return repr(value)


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

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

        return json.dumps(payload, ensure_ascii=False, default=_json_default)


def configure_logging(level: str, stream: TextIO | None = None) -> None:
    """Send all logging to ``stream`` (stderr by default) as JSON lines.

    Calling this again replaces the previous handler rather than adding one.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())
