"""
Request Rate Limiting.

A slowapi ``Limiter`` keyed by client IP applies ``RATE_LIMIT_DEFAULT``
(100 requests per 15 minutes) to every route through ``SlowAPIMiddleware``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from careerpath.core.logging_config import get_logger
from careerpath.server.core.config import settings

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

_rate_limit_config = settings.rate_limit

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_rate_limit_config.default_limit],
    enabled=_rate_limit_config.enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return the 429 body clients expect when a limit is hit."""
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)} on {request.method} {request.url.path}: {exc.detail}"
    )
    return JSONResponse(status_code=429, content={"detail": RATE_LIMIT_MESSAGE})
