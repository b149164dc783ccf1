"""Unit tests for structured logging"""

import json
import logging
from horizon.infrastructure.observability.logging import CustomJsonFormatter


def format_record(**extra) -> dict:
    record = logging.LogRecord("horizon.test", logging.INFO, __file__, 1, "Bank linked", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return json.loads(formatter.format(record))


def test_formatter_adds_service_metadata():
    data = format_record(request_id="req-1")

    assert data["message"] == "Bank linked"
    assert data["level"] == "INFO"
    assert data["service"] == "horizon"
    assert data["request_id"] == "req-1"
    assert "timestamp" in data


def test_formatter_redacts_secrets():
    data = format_record(access_token="access-sandbox-1", ssn="1234", bank_id="bank_doc_1")

    assert data["access_token"] == "[redacted]"
    assert data["ssn"] == "[redacted]"
    assert data["bank_id"] == "bank_doc_1"
