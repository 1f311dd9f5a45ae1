"""
Middleware modules for the CareerPath server.

This package contains custom middleware for request tracing, response hardening
and other cross-cutting concerns.
"""

from .logfire_middleware import LogfireMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = ["LogfireMiddleware", "SecurityHeadersMiddleware"]
