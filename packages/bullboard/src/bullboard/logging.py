"""Logging configuration for the board process.

Refresh-cycle records carry ``generation``, ``prefix``, ``queue_count`` and
``request_id`` via ``extra=``. The JSON formatter emits them as top-level
fields; the text formatter appends the ones present as ``key=value``.
"""

import json
import logging
from datetime import UTC, datetime

from bullboard.middleware import RequestIDFilter

# Record attributes set by the refresher and the request filter.
BOARD_FIELDS = ("request_id", "generation", "prefix", "queue_count", "state")


def _board_fields(record: logging.LogRecord) -> dict[str, object]:
    fields: dict[str, object] = {}
    for name in BOARD_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_board_fields(record),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _board_fields(record)
        if not fields:
            return line
        context = " ".join(f"{key}={value}" for key, value in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} {context}{sep}{tail}"


def configure_logging(*, log_format: str = "text", debug: bool = False) -> None:
    """Install one stream handler on the root logger."""
    level = logging.DEBUG if debug else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)
