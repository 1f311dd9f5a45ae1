"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
security headers, request tracing and rate limiting), registers the exception
handlers and includes all API routers. It serves as the root of the web server.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from careerpath.core.logging_config import get_logger, setup_logging
from careerpath.core.monitoring import initialize_logfire

from .api.v1 import (
    ai_counseling,
    auth,
    chat,
    colleges,
    events,
    forum,
    health,
    mentors,
    roadmap,
    users,
)
from .core import constant
from .core.config import settings
from .core.database import init_db
from .core.rate_limit import limiter, rate_limit_exceeded_handler
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware, SecurityHeadersMiddleware
from .services.roadmap_cache import roadmap_cache, run_periodic_cleanup

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables on startup and runs the hourly roadmap cache
    cleanup until shutdown.
    """
    # Startup
    try:
        logger.info("Starting up CareerPath API...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    cleanup_task = asyncio.create_task(run_periodic_cleanup(roadmap_cache))

    yield

    # Shutdown
    logger.info("Shutting down CareerPath API...")
    cleanup_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup_task


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    CareerPath API

    Backend services for the CareerPath career guidance platform: accounts and onboarding,
    mentors and mentoring sessions, events, the community forum, AI counseling,
    AI-generated career roadmaps, direct chat and the college finder.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
setup_exception_handlers(app)

# Middleware added last runs first: CORS wraps everything else
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(LogfireMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

initialize_logfire(app)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth")
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/user")
app.include_router(mentors.router, prefix=f"{constant.API_V1_STR}/mentors")
app.include_router(events.router, prefix=f"{constant.API_V1_STR}/events")
app.include_router(forum.router, prefix=f"{constant.API_V1_STR}/forum")
app.include_router(ai_counseling.router, prefix=f"{constant.API_V1_STR}/ai-counseling")
app.include_router(roadmap.router, prefix=f"{constant.API_V1_STR}/roadmap")
app.include_router(chat.router, prefix=f"{constant.API_V1_STR}/chat")
app.include_router(colleges.router, prefix=f"{constant.API_V1_STR}/colleges")
