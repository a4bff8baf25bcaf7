"""Tests for global exception handlers.

Validates that every error type maps to its HTTP status with a
``{"message": ...}`` body and that unexpected errors leak no details.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lookup_gateway.core.errors import (
    AdmissionDeniedError,
    AppError,
    UpstreamAppError,
    ValidationAppError,
)
from lookup_gateway.core.exception_handlers import setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="lookup_missing_fields", message="Missing fields")

        response = client.get("/test-validation")

        assert response.status_code == 400
        assert response.json() == {"message": "Missing fields"}

    def test_admission_denied_returns_429(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-denied")
        async def test_endpoint():
            raise AdmissionDeniedError(code="quota_exceeded", message="Quota reached")

        response = client.get("/test-denied")

        assert response.status_code == 429
        assert response.json() == {"message": "Quota reached"}
        assert "Retry-After" not in response.headers

    def test_admission_denied_with_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-cooldown")
        async def test_endpoint():
            raise AdmissionDeniedError(
                code="cooldown_active", message="Wait", details={"retry_after": 7}
            )

        response = client.get("/test-cooldown")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "7"

    def test_upstream_error_returns_500_with_prefix(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-upstream")
        async def test_endpoint():
            raise UpstreamAppError(
                code="rdap_upstream_failed",
                message="Primary and fallback requests failed. Fallback status: Not Found",
            )

        response = client.get("/test-upstream")

        assert response.status_code == 500
        assert response.json() == {
            "message": "An error occurred: Primary and fallback requests failed. Fallback status: Not Found"
        }

    def test_details_are_not_exposed(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise UpstreamAppError(
                code="rdap_upstream_failed",
                message="Primary request failed: Not Found",
                details={"attempts": [{"url": "https://internal.example/ip/1"}]},
            )

        response = client.get("/test-details")

        assert list(response.json()) == ["message"]
        assert "internal.example" not in response.text


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        from lookup_gateway.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/api/lookup"
        request.method = "POST"

        exc = RuntimeError("connection pool exhausted at 10.0.0.3")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data == {"message": "An error occurred: Internal server error."}

    def test_unexpected_exception_over_http(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise ValueError("Test error with details")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert "Traceback" not in response.text
        assert "Test error with details" not in response.text


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
