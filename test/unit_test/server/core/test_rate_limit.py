"""Unit tests for the per-IP rate limiter."""

import inspect

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from careerpath.server.core.rate_limit import RATE_LIMIT_MESSAGE, limiter, rate_limit_exceeded_handler


def test_shared_limiter_disabled_for_tests():
    assert limiter.enabled is False


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.state.limiter = Limiter(key_func=get_remote_address, default_limits=["2/minute"])
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.get("/api/v1/events")
    async def list_events(request: Request):
        return {"events": []}

    return TestClient(app)


def test_limit_returns_429_body(client):
    assert client.get("/api/v1/events").status_code == 200
    assert client.get("/api/v1/events").status_code == 200

    response = client.get("/api/v1/events")
    assert response.status_code == 429
    assert response.json() == {"detail": RATE_LIMIT_MESSAGE}


def test_handler_is_synchronous():
    # SlowAPIMiddleware only invokes a registered handler that is a plain function
    assert not inspect.iscoroutinefunction(rate_limit_exceeded_handler)
