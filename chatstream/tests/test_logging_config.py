"""Tests for core/logging_config: redaction, StructuredFormatter, setup_logging."""

import json
import logging
import sys

from chatstream.config.loader import Config
from chatstream.core.logging_config import (
    StructuredFormatter,
    _redact,
    setup_logging,
    setup_logging_from_config,
)


def _record(msg="hello", level=logging.INFO, exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_redact_bearer_values():
    assert _redact("Bearer abc123") == "[REDACTED]"
    assert _redact("hello") == "hello"


def test_redact_sensitive_keys_recursive():
    assert _redact({"Authorization": "x", "nested": {"api_key": "y"}}) == {
        "Authorization": "[REDACTED]",
        "nested": {"api_key": "[REDACTED]"},
    }
    assert _redact({"message_id": "msg_1"}) == {"message_id": "msg_1"}


def test_redact_list():
    assert _redact(["bearer x", "ok"]) == ["[REDACTED]", "ok"]


def test_structured_formatter_json_includes_extra():
    fmt = StructuredFormatter(use_json=True)
    data = json.loads(fmt.format(_record(message_id="msg_1", api_key="sk-1")))
    assert data["message"] == "hello"
    assert data["level"] == "INFO"
    assert data["message_id"] == "msg_1"
    assert data["api_key"] == "[REDACTED]"


def test_structured_formatter_key_value():
    out = StructuredFormatter(use_json=False).format(_record("warn", logging.WARNING))
    assert "warn" in out
    assert "WARNING" in out


def test_structured_formatter_with_exc_info():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    data = json.loads(StructuredFormatter().format(_record("failed", logging.ERROR, exc_info)))
    assert "ValueError" in data["exception"]


def test_setup_logging():
    setup_logging(level="WARNING", use_json=False)
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_from_config(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("logging:\n  level: DEBUG\n  json_format: false\n")
    setup_logging_from_config(Config.load(config_path=path))
    assert logging.getLogger().level == logging.DEBUG
    logging.getLogger().setLevel(logging.WARNING)
