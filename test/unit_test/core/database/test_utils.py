"""Unit tests for engine and session factory helpers."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from careerpath.core.database import create_engine, create_sessionmaker


class TestCreateEngine:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/careerpath",
            "postgresql://u:p@db:5432/careerpath",
            "postgresql+psycopg2://u:p@db:5432/careerpath",
            "postgresql+asyncpg://u:p@db:5432/careerpath",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, url):
        engine = create_engine(url)
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "careerpath"

    def test_sqlite_url_kept(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        assert engine.url.drivername == "sqlite+aiosqlite"


def test_sessionmaker_keeps_objects_after_commit():
    factory = create_sessionmaker(create_engine("sqlite+aiosqlite:///:memory:"))
    assert factory.class_ is AsyncSession
    assert factory.kw["expire_on_commit"] is False
