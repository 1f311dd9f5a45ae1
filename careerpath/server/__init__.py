"""
CareerPath Server Package.

This package contains the web server implementation for the CareerPath API.
It includes the API definition, database models, service logic, and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration, database connections, security and rate limiting.
    models: SQLModel database table definitions and request/response schemas.
    services: Business logic (AI counseling, roadmap generation, college data).
    middleware: Request tracing and security headers.
    exception_handlers: Application-wide error responses.
"""
