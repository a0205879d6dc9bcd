"""Unit tests for log record stamping and JSON output."""

import json
import logging
import uuid

from unishare.logging_config import JsonFormatter, _record_factory, request_id_var


def make_record(message: str, **extra) -> logging.LogRecord:
    record = _record_factory("unishare.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRecordFactory:
    """Tests for request id stamping."""

    def test_record_carries_active_request_id(self):
        """Test that records made inside a request get its id."""
        token = request_id_var.set("req-42")
        try:
            record = make_record("Resource created")
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-42"

    def test_record_outside_request_gets_placeholder(self):
        """Test that records made outside a request get '-'."""
        assert make_record("Starting").request_id == "-"


class TestJsonFormatter:
    """Tests for the production formatter."""

    def test_extra_fields_are_serialized(self):
        """Test that UUIDs passed through extra= become strings."""
        resource_id = uuid.uuid4()
        token = request_id_var.set("req-7")
        try:
            record = make_record("Resource blocked", slug="os-notes", resource_id=resource_id)
        finally:
            request_id_var.reset(token)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "Resource blocked"
        assert entry["service"] == "unishare"
        assert entry["request_id"] == "req-7"
        assert entry["slug"] == "os-notes"
        assert entry["resource_id"] == str(resource_id)
        assert "msg" not in entry

    def test_placeholder_request_id_is_omitted(self):
        """Test that lines logged outside a request have no request_id key."""
        entry = json.loads(JsonFormatter().format(make_record("Database initialized")))

        assert "request_id" not in entry
