"""
Unit tests for logging helpers and request body sanitizing.
"""

import json
import logging

from larun.core.logging_config import (
    ContextLoggerAdapter, JSONFormatter, filter_sensitive_data, truncate_large_data,
)
from larun.middleware.logging_middleware import sanitize_body


def make_record(msg="hello", **extra):
    record = logging.LogRecord("larun.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        line = json.loads(JSONFormatter().format(make_record()))
        assert line["level"] == "INFO"
        assert line["logger"] == "larun.test"
        assert line["message"] == "hello"

    def test_extra_fields_are_merged(self):
        record = make_record(extra_fields={"conversation_id": "42", "duration_ms": 1.5})
        line = json.loads(JSONFormatter().format(record))
        assert line["conversation_id"] == "42"
        assert line["duration_ms"] == 1.5


class TestContextLoggerAdapter:

    def test_context_is_merged_with_call_extras(self):
        adapter = ContextLoggerAdapter(logging.getLogger("larun.test"), {"user_id": "u1"})
        _, kwargs = adapter.process("msg", {"extra": {"extra_fields": {"source": "remote"}}})
        assert kwargs["extra"]["extra_fields"] == {"user_id": "u1", "source": "remote"}


class TestSensitiveData:

    def test_credentials_are_masked(self):
        data = {
            "message": "hi",
            "Authorization": "Bearer abc",
            "nested": [{"api_key": "sk-1", "ok": 1}],
        }
        filtered = filter_sensitive_data(data)
        assert filtered["message"] == "hi"
        assert filtered["Authorization"] == "***FILTERED***"
        assert filtered["nested"][0] == {"api_key": "***FILTERED***", "ok": 1}
        assert data["Authorization"] == "Bearer abc"

    def test_truncate(self):
        assert truncate_large_data("short") == "short"
        truncated = truncate_large_data("x" * 20, max_length=10)
        assert truncated.startswith("x" * 10)
        assert "total length: 20" in truncated

    def test_sanitize_json_body(self):
        body = json.dumps({"message": "hi", "token": "secret-value"}).encode()
        sanitized = sanitize_body(body)
        assert "secret-value" not in sanitized
        assert "hi" in sanitized

    def test_sanitize_plain_body(self):
        assert sanitize_body(b"not json") == "not json"
