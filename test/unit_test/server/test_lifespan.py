"""
Unit tests for FastAPI application lifespan management.

Tests verify that startup creates the database tables and starts the roadmap
cache cleanup task, and that shutdown cancels it.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.pool import StaticPool

from careerpath.server.main import lifespan

pytestmark = pytest.mark.asyncio


@pytest.fixture
def cleanup_calls():
    """Replace the periodic cleanup with a coroutine that waits until cancelled."""
    calls: list[dict] = []

    async def fake_cleanup(cache):
        calls.append({"cache": cache, "cancelled": False})
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            calls[-1]["cancelled"] = True
            raise

    with patch("careerpath.server.main.run_periodic_cleanup", fake_cleanup):
        yield calls


class TestLifespanStartup:
    """Test application startup lifespan events."""

    async def test_startup_initializes_database(self, cleanup_calls):
        with patch("careerpath.server.main.init_db", new_callable=AsyncMock) as mock_init_db:
            async with lifespan(FastAPI()):
                mock_init_db.assert_awaited_once()

    async def test_startup_logs_success(self, cleanup_calls):
        with (
            patch("careerpath.server.main.init_db", new_callable=AsyncMock),
            patch("careerpath.server.main.logger") as mock_logger,
        ):
            async with lifespan(FastAPI()):
                pass

        messages = [call[0][0] for call in mock_logger.info.call_args_list]
        assert any("Starting up" in message for message in messages)
        assert any("Database initialized successfully" in message for message in messages)
        assert any("Shutting down" in message for message in messages)

    async def test_startup_survives_database_failure(self, cleanup_calls):
        with (
            patch("careerpath.server.main.init_db", new_callable=AsyncMock) as mock_init_db,
            patch("careerpath.server.main.logger") as mock_logger,
        ):
            mock_init_db.side_effect = Exception("Database connection failed")
            async with lifespan(FastAPI()):
                await asyncio.sleep(0)

        mock_logger.error.assert_called_once()
        assert "Database initialization failed" in mock_logger.error.call_args[0][0]
        # The cleanup task still ran
        assert len(cleanup_calls) == 1


class TestCleanupTask:
    """The roadmap cache cleanup task follows the application lifetime."""

    async def test_cleanup_runs_on_shared_cache_and_is_cancelled(self, cleanup_calls):
        from careerpath.server.services.roadmap_cache import roadmap_cache

        with patch("careerpath.server.main.init_db", new_callable=AsyncMock):
            async with lifespan(FastAPI()):
                await asyncio.sleep(0)
                assert cleanup_calls[0]["cache"] is roadmap_cache
                assert cleanup_calls[0]["cancelled"] is False

        assert cleanup_calls[0]["cancelled"] is True


class TestInitDb:
    """init_db creates every table on the configured engine."""

    async def test_creates_tables(self):
        from careerpath.server.core import database

        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        try:
            with patch.object(database, "engine", engine):
                await database.init_db()

            async with engine.connect() as conn:
                tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        finally:
            await engine.dispose()

        assert {
            "users",
            "activities",
            "mentors",
            "mentor_sessions",
            "events",
            "event_registrations",
            "forum_posts",
            "forum_replies",
            "counseling_sessions",
            "counseling_messages",
            "career_roadmaps",
            "chats",
            "chat_messages",
        } <= set(tables)
