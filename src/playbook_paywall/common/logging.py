"""Structured JSON logging for Playbook Paywall."""

import json
import logging
import sys
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line. ``extra=`` fields become top-level keys."""

    def __init__(self, static_fields: dict | None = None):
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static_fields,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in entry:
                entry[key] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", environment: str | None = None) -> None:
    """Attach the JSON handler to the package logger. Safe to call repeatedly."""
    logger = logging.getLogger("playbook_paywall")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
        return

    static_fields = {"service": "playbook-paywall"}
    if environment:
        static_fields["environment"] = environment
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(static_fields))
    logger.addHandler(handler)
    logger.propagate = False
