"""
Unit tests for the request middleware.

This test suite covers:
- Request timing and the X-Process-Time header
- Slow request detection
- Error logging for failing handlers
- Security headers
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI, Request
from starlette.responses import Response
from starlette.testclient import TestClient

from careerpath.server.middleware import LogfireMiddleware, SecurityHeadersMiddleware
from careerpath.server.middleware.security_headers import SECURITY_HEADERS


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/events"
    request.state = MagicMock()
    return request


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    @pytest.mark.asyncio
    async def test_successful_request(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())
        with patch("careerpath.server.middleware.logfire_middleware.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        kwargs = mock_log.call_args[1]
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/events"
        assert kwargs["status_code"] == 200
        assert kwargs["duration_ms"] >= 0
        assert float(response.headers["X-Process-Time"]) >= 0

    @pytest.mark.asyncio
    async def test_slow_request_warns(self, mock_request):
        async def call_next(request):
            return Response(status_code=201)

        middleware = LogfireMiddleware(app=AsyncMock())
        with (
            patch("careerpath.server.middleware.logfire_middleware.time") as mock_time,
            patch("careerpath.server.middleware.logfire_middleware.log_api_request") as mock_log,
            patch("careerpath.server.middleware.logfire_middleware.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [10.0, 12.5]
            response = await middleware.dispatch(mock_request, call_next)

        assert response.headers["X-Process-Time"] == "2500.00"
        assert mock_log.call_args[1]["duration_ms"] == 2500.0
        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]

    @pytest.mark.asyncio
    async def test_fast_request_does_not_warn(self, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())
        with (
            patch("careerpath.server.middleware.logfire_middleware.time") as mock_time,
            patch("careerpath.server.middleware.logfire_middleware.log_api_request"),
            patch("careerpath.server.middleware.logfire_middleware.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [10.0, 10.2]
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_handler_is_logged_and_reraised(self, mock_request):
        async def call_next(request):
            raise RuntimeError("database down")

        middleware = LogfireMiddleware(app=AsyncMock())
        with (
            patch("careerpath.server.middleware.logfire_middleware.log_api_request") as mock_log,
            patch("careerpath.server.middleware.logfire_middleware.logger") as mock_logger,
        ):
            with pytest.raises(RuntimeError, match="database down"):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args[1]["status_code"] == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error"] == "database down"

    @pytest.mark.asyncio
    async def test_start_time_on_request_state(self, mock_request):
        async def call_next(request):
            return Response(status_code=204)

        middleware = LogfireMiddleware(app=AsyncMock())
        with (
            patch("careerpath.server.middleware.logfire_middleware.time") as mock_time,
            patch("careerpath.server.middleware.logfire_middleware.log_api_request"),
        ):
            mock_time.perf_counter.side_effect = [42.0, 42.001]
            await middleware.dispatch(mock_request, call_next)

        assert mock_request.state.start_time == 42.0


class TestMiddlewareOnApplication:
    """Both middlewares mounted on a small application."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)
        app.add_middleware(LogfireMiddleware)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        @app.get("/framed")
        async def framed():
            return Response(content="{}", media_type="application/json", headers={"X-Frame-Options": "DENY"})

        return TestClient(app)

    def test_headers_added(self, client):
        with patch("careerpath.server.middleware.logfire_middleware.log_api_request"):
            response = client.get("/ping")

        assert response.status_code == 200
        assert "X-Process-Time" in response.headers
        for header, value in SECURITY_HEADERS.items():
            assert response.headers[header] == value

    def test_route_headers_are_kept(self, client):
        with patch("careerpath.server.middleware.logfire_middleware.log_api_request"):
            response = client.get("/framed")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_not_found_is_still_logged(self, client):
        with patch("careerpath.server.middleware.logfire_middleware.log_api_request") as mock_log:
            response = client.get("/missing")

        assert response.status_code == 404
        assert mock_log.call_args[1]["status_code"] == 404
