"""
Unit tests for server exception handlers.

Tests cover the catch-all 500 handler and the 400 validation handler, both
called directly and through a small application.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from careerpath.server.exception_handlers import setup_exception_handlers
from careerpath.server.exception_handlers.global_handler import (
    global_exception_handler,
    validation_exception_handler,
)


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/roadmap/generate"
    request.query_params = {"force": "1"}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_logs_with_context(self, mock_request):
        exc = ValueError("Test error")

        with (
            patch("careerpath.server.exception_handlers.global_handler.logger") as mock_logger,
            patch("careerpath.server.exception_handlers.global_handler.log_error") as mock_log_error,
        ):
            response = await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        message, kwargs = mock_logger.error.call_args[0][0], mock_logger.error.call_args[1]
        assert "Unhandled exception" in message
        assert kwargs["exc_info"] is exc
        extra = kwargs["extra"]
        assert extra["error_type"] == "ValueError"
        assert extra["method"] == "POST"
        assert extra["path"] == "/api/v1/roadmap/generate"
        assert extra["query_params"] == {"force": "1"}
        assert extra["client"] == "127.0.0.1"
        assert "ValueError: Test error" in extra["traceback"]

        body = json.loads(response.body.decode())
        mock_log_error.assert_called_once_with(
            "ValueError", "Test error", {"error_id": body["error_id"], "path": "/api/v1/roadmap/generate"}
        )

    @pytest.mark.asyncio
    async def test_response_body(self, mock_request):
        with patch("careerpath.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, RuntimeError("boom"))

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body["detail"] == "Internal server error"
        assert body["error_type"] == "RuntimeError"
        assert len(body["error_id"]) == 12

    @pytest.mark.asyncio
    async def test_error_ids_are_unique(self, mock_request):
        with patch("careerpath.server.exception_handlers.global_handler.logger"):
            first = await global_exception_handler(mock_request, RuntimeError("a"))
            second = await global_exception_handler(mock_request, RuntimeError("b"))

        assert json.loads(first.body)["error_id"] != json.loads(second.body)["error_id"]

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None
        with patch("careerpath.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, KeyError("x"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestValidationExceptionHandler:
    """Test suite for the 400 validation handler."""

    @pytest.mark.asyncio
    async def test_shape(self, mock_request):
        exc = RequestValidationError(
            [{"type": "missing", "loc": ("body", "email"), "msg": "Field required", "input": {}}]
        )
        response = await validation_exception_handler(mock_request, exc)

        assert response.status_code == 400
        body = json.loads(response.body.decode())
        assert body["detail"] == "Validation errors"
        assert body["errors"][0]["loc"] == ["body", "email"]
        assert body["errors"][0]["msg"] == "Field required"

    @pytest.mark.asyncio
    async def test_exception_context_is_stringified(self, mock_request):
        exc = RequestValidationError(
            [{"type": "value_error", "loc": ("body", "message"), "msg": "bad", "ctx": {"error": ValueError("bad")}}]
        )
        response = await validation_exception_handler(mock_request, exc)

        assert json.loads(response.body)["errors"][0]["ctx"] == {"error": "bad"}


class Payload(BaseModel):
    title: str = Field(..., min_length=3)


class TestSetupExceptionHandlers:
    """Test the handlers once registered on an application."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        @app.post("/items")
        async def create_item(payload: Payload):
            return payload

        return TestClient(app, raise_server_exceptions=False)

    def test_registers_handlers(self):
        app = FastAPI()
        setup_exception_handlers(app)

        assert app.exception_handlers[Exception] is global_exception_handler
        assert app.exception_handlers[RequestValidationError] is validation_exception_handler

    def test_unhandled_error_returns_500(self, client):
        with patch("careerpath.server.exception_handlers.global_handler.logger"):
            response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"

    def test_invalid_body_returns_400(self, client):
        response = client.post("/items", json={"title": "x"})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation errors"
        assert body["errors"][0]["loc"] == ["body", "title"]

    def test_valid_body_passes(self, client):
        response = client.post("/items", json={"title": "Resume review"})
        assert response.status_code == 200
