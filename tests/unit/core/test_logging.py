"""
Tests for structured logging and PII masking.
"""

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    is_sensitive_field,
    mask_headers,
    mask_sensitive_data,
    setup_logging,
)


class TestSensitiveFields:

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("access_token", True),
        ("api_key", True),
        ("Authorization", True),
        ("resume_text", True),
        ("cover_letter", True),
        ("private_notes", True),
        ("notes", False),
        ("status", False),
        ("job_id", False),
        ("recommendation", False),
    ])
    def test_field_detection(self, field_name, expected):
        assert is_sensitive_field(field_name) == expected


class TestMasking:

    def test_sensitive_fields_are_redacted(self):
        masked = mask_sensitive_data(
            {"job_id": 3, "resume_text": "Ten years of Python", "private_notes": "weak"}
        )

        assert masked == {
            "job_id": 3,
            "resume_text": "[REDACTED]",
            "private_notes": "[REDACTED]",
        }

    def test_pii_in_free_text(self):
        masked = mask_sensitive_data({"notes": "Reach me at jane@example.com or 555-123-4567"})

        assert "jane@example.com" not in masked["notes"]
        assert "[EMAIL]" in masked["notes"]
        assert "[PHONE]" in masked["notes"]

    def test_nested_structures(self):
        masked = mask_sensitive_data(
            {"interviewers": [{"interviewer_id": 7, "token": "abc"}]}
        )

        assert masked == {"interviewers": [{"interviewer_id": 7, "token": "[REDACTED]"}]}

    def test_depth_limit(self):
        data = current = {}
        for _ in range(20):
            current["child"] = {}
            current = current["child"]

        masked = mask_sensitive_data(data, max_depth=3)

        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(masked)

    def test_authorization_header_keeps_scheme(self):
        masked = mask_headers({"Authorization": "Bearer abc.def.ghi", "Accept": "*/*"})

        assert masked == {"Authorization": "Bearer [REDACTED]", "Accept": "*/*"}

    def test_cookie_header(self):
        assert mask_headers({"Cookie": "session=1"}) == {"Cookie": "[REDACTED]"}


class TestFormatter:

    def test_json_line(self):
        record = logging.LogRecord("pipeline", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "req-1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"

    def test_exception_info(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            import sys
            record = logging.LogRecord(
                "pipeline", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"

    def test_setup_logging_installs_single_handler(self):
        setup_logging(log_level="DEBUG", json_logs=True)
        root = logging.getLogger()

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert root.level == logging.DEBUG

        setup_logging(log_level="INFO", json_logs=False)


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(StructuredLoggingMiddleware, log_request_body=True)

    @app.post("/applications")
    async def apply(payload: dict):
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return TestClient(app)


class TestMiddleware:

    def test_request_id_is_echoed(self, client):
        response = client.post("/applications", json={}, headers={"x-request-id": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"

    def test_request_id_is_generated(self, client):
        response = client.post("/applications", json={})

        assert response.headers["x-request-id"]

    def test_body_is_logged_masked(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.post(
                "/applications",
                json={"job_id": 3, "resume_text": "secret resume", "cover_letter": "hi"},
            )

        started = [
            json.loads(r.getMessage())
            for r in caplog.records
            if '"request_started"' in r.getMessage()
        ]
        assert started[0]["body"] == {
            "job_id": 3,
            "resume_text": "[REDACTED]",
            "cover_letter": "[REDACTED]",
        }
        assert "secret resume" not in caplog.text

    def test_health_checks_are_quiet(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            response = client.get("/health")

        assert response.headers["x-request-id"]
        assert "request_started" not in caplog.text
