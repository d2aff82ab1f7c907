"""Structured logging. Credentials never reach log output."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chatstream.config.loader import Config

_SENSITIVE_KEYS = ("authorization", "api_key", "token", "password", "secret")

# LogRecord attributes that are not user-supplied `extra` fields
_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        "asctime",
    )
)


def _redact(obj: Any, key: str = "") -> Any:
    if key and any(s in key.lower() for s in _SENSITIVE_KEYS):
        return "[REDACTED]"
    if isinstance(obj, dict):
        return {k: _redact(v, str(k)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_redact(v) for v in obj]
    if isinstance(obj, str) and "bearer " in obj.lower():
        return "[REDACTED]"
    return obj


class StructuredFormatter(logging.Formatter):
    """JSON or key=value format; `extra` fields are included and redacted."""

    def __init__(self, use_json: bool = True) -> None:
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_dict[key] = _redact(value, key)
        if self.use_json:
            return json.dumps(log_dict, default=str)
        return " ".join(f"{k}={v!r}" for k, v in log_dict.items())


def setup_logging(level: str = "INFO", use_json: bool = True) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(use_json=use_json))
        root.addHandler(handler)


def setup_logging_from_config(config: Config) -> None:
    setup_logging(level=config.logging.level, use_json=config.logging.json_format)
