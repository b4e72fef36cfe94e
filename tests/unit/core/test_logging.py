"""
Tests for logging middleware.
Tests credential masking, request tracking and logging setup.
"""

import pytest
import json
import logging
from unittest.mock import patch
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core.middleware.authentication import AuthenticationMiddleware
from core.middleware.logging import (
    is_sensitive_field,
    mask_sensitive_data,
    mask_headers,
    should_log_request,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)
from core.config import settings
from core.security import create_access_token


class NeverRevoked:
    async def is_revoked(self, token):
        return False


class TestSensitiveFieldDetection:
    """Test sensitive field name detection."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("user_password", True),
        ("otp", True),
        ("token", True),
        ("access_token", True),
        ("client_secret", True),
        ("Authorization", True),
        ("cookie", True),
        ("title", False),
        ("bid_amount", False),
        ("fixer_id", False),
        ("description", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) == expected


class TestDataMasking:
    """Test recursive masking."""

    def test_dict_masking(self):
        data = {"title": "Fix sink", "password": "hunter2", "token": "abc"}
        masked = mask_sensitive_data(data)
        assert masked == {"title": "Fix sink", "password": "[REDACTED]", "token": "[REDACTED]"}

    def test_nested_structures(self):
        data = {"job": {"notes": ["mail me at a@b.com"], "auth": {"refresh_token": "x"}}}
        masked = mask_sensitive_data(data)
        assert masked["job"]["notes"] == ["mail me at [EMAIL]"]
        assert masked["job"]["auth"]["refresh_token"] == "[REDACTED]"

    def test_max_depth_protection(self):
        data = current = {}
        for _ in range(20):
            current["child"] = {}
            current = current["child"]
        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(mask_sensitive_data(data))

    def test_non_string_values_untouched(self):
        assert mask_sensitive_data({"amount": 12.5, "notify": True, "x": None}) == {
            "amount": 12.5,
            "notify": True,
            "x": None,
        }


class TestHeaderMasking:
    """Test header masking."""

    def test_authorization_keeps_scheme(self):
        masked = mask_headers({"Authorization": "Bearer eyJhbGciOi.xyz.abc"})
        assert masked["Authorization"] == "Bearer [REDACTED]"

    def test_cookie_header(self):
        masked = mask_headers({"cookie": "session=abc", "accept": "application/json"})
        assert masked == {"cookie": "[REDACTED]", "accept": "application/json"}


class TestShouldLogRequest:
    @pytest.mark.parametrize("path,expected", [
        ("/health", False),
        ("/ready", False),
        ("/api/job-postings", True),
    ])
    def test_health_check_paths_skipped(self, path, expected):
        assert should_log_request(path) == expected


class TestStructuredLoggingMiddleware:
    """Test structured logging middleware."""

    @pytest.fixture
    def app(self):
        """Create FastAPI app with logging and authentication middleware."""
        app = FastAPI()
        app.add_middleware(
            StructuredLoggingMiddleware,
            log_request_body=True,
            max_body_size=1024,
        )
        app.add_middleware(
            AuthenticationMiddleware,
            jwt_secret=settings.jwt_secret_key,
            jwt_algorithm=settings.jwt_algorithm,
            revocation_list=NeverRevoked(),
        )

        @app.get("/test")
        async def test_endpoint():
            return {"message": "success"}

        @app.post("/post-data")
        async def post_endpoint(request: Request):
            await request.json()
            return {"received": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_request_logging(self, client):
        with patch('core.middleware.logging.logger') as mock_logger:
            response = client.get("/test")

            assert response.status_code == 200
            events = [json.loads(call.args[0])["event"] for call in mock_logger.info.call_args_list]
            assert events == ["request_started", "request_completed"]

    def test_request_id_generation(self, client):
        response = client.get("/test")
        assert len(response.headers["x-request-id"]) > 0

    def test_request_id_preservation(self, client):
        response = client.get("/test", headers={"x-request-id": "custom-request-id-123"})
        assert response.headers["x-request-id"] == "custom-request-id-123"

    def test_health_check_not_logged(self, client):
        with patch('core.middleware.logging.logger') as mock_logger:
            response = client.get("/health")

            assert response.status_code == 200
            assert not mock_logger.info.called

    def test_user_id_from_principal(self, client):
        token = create_access_token(user_id=42, role="fixer")
        with patch('core.middleware.logging.logger') as mock_logger:
            client.get("/test", headers={"Authorization": f"Bearer {token}"})

            completed = json.loads(mock_logger.info.call_args_list[-1].args[0])
            assert completed["user_id"] == 42
            assert completed["status_code"] == 200
            assert "duration_ms" in completed

    def test_token_never_logged(self, client):
        token = create_access_token(user_id=42, role="fixer")
        with patch('core.middleware.logging.logger') as mock_logger:
            client.get("/test", headers={"Authorization": f"Bearer {token}"})

            assert token not in str(mock_logger.info.call_args_list)

    def test_request_body_masked(self, client):
        data = {"title": "Fix sink", "password": "secret123", "email": "john@example.com"}

        with patch('core.middleware.logging.logger') as mock_logger:
            response = client.post("/post-data", json=data)

            assert response.status_code == 200
            logged = str(mock_logger.info.call_args_list)
            assert "secret123" not in logged
            assert "john@example.com" not in logged
            assert "Fix sink" in logged

    def test_client_errors_logged_as_warning(self, client):
        with patch('core.middleware.logging.logger') as mock_logger:
            client.get("/missing")

            assert mock_logger.warning.called


class TestLoggingSetup:
    """Test logging setup and configuration."""

    def test_setup_logging_json_format(self):
        setup_logging(log_level="INFO", json_logs=True)
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, StructuredFormatter)

    def test_setup_logging_text_format(self):
        setup_logging(log_level="DEBUG", json_logs=False)
        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, StructuredFormatter)
        assert logging.getLogger().level == logging.DEBUG

    def test_structured_formatter_output(self):
        record = logging.LogRecord("api.services.bids", logging.INFO, __file__, 1, "Bid accepted", None, None)
        record.request_id = "req-1"
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "Bid accepted"
        assert payload["logger"] == "api.services.bids"
        assert payload["request_id"] == "req-1"

    def test_get_logger(self):
        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)
