"""
PolicyLens logging.

JSON lines for the API, a compact text form for the CLI. Both formats carry
the analysis context passed through `extra=` (result id, pattern id, chunk and
match counts, request fields); anything outside EXTRA_FIELDS is ignored.

    from policylens.logging import get_logger
    logger = get_logger("pipeline")
    logger.info("Analysis complete", extra={"result_id": rid, "chunk_count": 3})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("POLICYLENS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("POLICYLENS_LOG_FORMAT", "json")  # "json" or "text"

EXTRA_FIELDS = (
    "result_id", "pattern_id", "trigger", "chunk_count", "match_count",
    "pattern_count", "duration_ms", "status_code", "method", "path",
    "error", "error_type",
)


def _context(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info and record.exc_info[0]:
            entry.setdefault("error_type", record.exc_info[0].__name__)
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """`HH:MM:SS LEVEL logger: message key=value ...`"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{k}={v}" for k, v in _context(record).items())
        if not pairs:
            return line
        # Keep the context on the first line when a traceback follows
        head, sep, rest = line.partition("\n")
        return f"{head} {pairs}{sep}{rest}"


def setup_logging(fmt: str | None = None, stream=None, level: str | None = None) -> logging.Logger:
    """
    Install a single handler on the `policylens` logger and return it.

    Calling again replaces the handler, so the CLI can point logs at stderr
    after the API or a test configured stdout.
    """
    root = logging.getLogger("policylens")
    root.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if (fmt or LOG_FORMAT) == "json" else TextFormatter())
    root.addHandler(handler)

    # Request lines come from our own middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """Named logger under `policylens.`."""
    return logging.getLogger(f"policylens.{name}")
