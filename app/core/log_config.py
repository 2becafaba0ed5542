"""Logging setup for the grading service."""
import json
import logging
from typing import Any

from app.config import logging_settings

# Submissions carry student credentials; never let them reach a log line.
MASKED_FIELDS = frozenset({"password", "hashed_password", "token", "authorization"})
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the `extra=` fields of a record with credentials masked."""
    return {
        key: "***" if key.lower() in MASKED_FIELDS else value
        for key, value in vars(record).items()
        if key not in _RESERVED
    }


class GradingLogFormatter(logging.Formatter):
    def __init__(self, use_json: bool = False, **kwargs: Any):
        super().__init__(**kwargs)
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        context = record_context(record)
        if not self.use_json:
            line = super().format(record)
            return f"{line} | " + " ".join(f"{k}={v}" for k, v in context.items()) if context else line

        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging() -> None:
    """Install a single stream handler on the root logger. Safe to call twice."""
    root = logging.getLogger()
    if getattr(root, "_grading_configured", False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(GradingLogFormatter(use_json=logging_settings.LOG_FORMAT == "json", fmt=TEXT_FORMAT))

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging_settings.LOG_LEVEL)
    root._grading_configured = True  # type: ignore[attr-defined]
