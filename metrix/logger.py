"""Process-wide structured logger."""

from __future__ import annotations

import json
import logging
import sys

LOGGER_NAME = "metrix"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_log = logging.getLogger(LOGGER_NAME)
_log.addHandler(logging.NullHandler())


class _JSONFormatter(logging.Formatter):
    """One JSON object per record, with any ``fields`` extra merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
            "ts": record.created,
            "caller": f"{record.module}:{record.lineno}",
            "msg": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            entry.update(fields)
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _parse_level(level: str) -> int:
    if level == level.lower() or level == level.upper():
        numeric = _LEVELS.get(level.lower())
        if numeric is not None:
            return numeric
    raise ValueError(f"unrecognized level: {level!r}")


def initialize(level: str) -> None:
    """Switch the logger to JSON output on stderr at ``level``.

    Raises ValueError for an unknown level and leaves the logger unchanged.
    """
    numeric = _parse_level(level)
    for handler in list(_log.handlers):
        _log.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JSONFormatter())
    _log.addHandler(handler)
    _log.setLevel(numeric)


def get_logger() -> logging.Logger:
    """The shared logger; silent until :func:`initialize` is called."""
    return _log