"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ipweather.core.errors import (
    AppError,
    BudgetExceededError,
    CacheIOError,
    LookupFailureError,
    MalformedRequestError,
    NotFoundAppError,
    UpstreamAppError,
    ValidationAppError,
)
from ipweather.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_malformed_request_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify MalformedRequestError returns HTTP 400 with details."""
        @app_with_handlers.get("/test-malformed")
        async def test_endpoint():
            raise MalformedRequestError(
                code="malformed_request",
                message="Malformed request: /a/b/c",
                details={"path": "/a/b/c", "segments": 3},
            )

        response = client.get("/test-malformed")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "malformed_request"
        assert data["error"]["details"]["segments"] == 3
        assert "request_id" in data["error"]

    def test_budget_exceeded_returns_503_with_retry_after(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        """Verify BudgetExceededError returns 503 and a Retry-After header."""
        @app_with_handlers.get("/test-budget")
        async def test_endpoint():
            raise BudgetExceededError(
                code="weather_budget_exceeded",
                message="Weather API limit exceeded. Try again later.",
                details={"api": "weather", "retry_after": 97},
            )

        response = client.get("/test-budget")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "97"
        assert response.json()["error"]["details"]["api"] == "weather"

    def test_upstream_error_returns_503(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify UpstreamAppError returns HTTP 503 without Retry-After."""
        @app_with_handlers.get("/test-upstream")
        async def test_endpoint():
            raise UpstreamAppError(code="weather_unreachable", message="Weather provider is unreachable")

        response = client.get("/test-upstream")

        assert response.status_code == 503
        assert "Retry-After" not in response.headers
        assert response.json()["error"]["code"] == "weather_unreachable"

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify error responses have consistent JSON structure."""
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise ValidationAppError(code="test", message="test")

        response = client.get("/test-format")
        data = response.json()

        # Required fields always present
        assert "error" in data
        assert "code" in data["error"]
        assert "message" in data["error"]
        assert "request_id" in data["error"]
        assert "details" not in data["error"]


@pytest.mark.parametrize(
    ("exc_type", "expected"),
    [
        (ValidationAppError, 400),
        (MalformedRequestError, 400),
        (BudgetExceededError, 503),
        (UpstreamAppError, 503),
        (LookupFailureError, 500),
        (CacheIOError, 500),
        (NotFoundAppError, 404),
    ],
)
def test_status_for_each_error_type(exc_type: type[AppError], expected: int):
    assert status_for(exc_type(code="x", message="x")) == expected


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_error_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("cache directory vanished")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "vanished" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert "Test error" not in data["error"]["message"]


class TestNotFound:
    """Unknown resources share the JSON error body."""

    def test_not_found_error_returns_404_body(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-missing")
        async def test_endpoint():
            raise NotFoundAppError(code="not_found", message="Not Found")

        response = client.get("/test-missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"
        assert "request_id" in response.json()["error"]
