"""
Database Connection and Session Management.

This module sets up the asynchronous SQLAlchemy engine and session factory.
It provides utilities for dependency injection of database sessions.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from careerpath.core.database import create_all, create_engine, create_sessionmaker
from careerpath.server.core.config import settings

"""
engine:
    The global SQLAlchemy AsyncEngine instance.
    Configured with the connection URL from settings and optimized for async usage.
"""
engine = create_engine(settings.database_url)

"""
async_session_maker:
    A global factory for creating new AsyncSession instances.
    Bound to the `engine` and configured to NOT expire on commit (typical for async).
"""
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Imports every table module so that the SQLModel metadata is complete, then
    creates any table that does not exist yet.
    """
    import careerpath.server.models  # noqa: F401

    await create_all(engine)
