"""Shared test fixtures: throwaway SQLite database, stores, upserter, HTTP client.

Every test gets its own database file so sessions opened by the app and
by the assertions see each other's commits without sharing a connection.
"""

import os

# Must be set before hub.config is imported anywhere.
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_CREATE_TABLES", "false")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hub import models
from hub.api import app
from hub.cache import CandidateCache
from hub.db import get_session, init_models
from hub.models import CandidateRecord
from hub.pipelines.upsert import CandidateUpserter, get_upserter
from hub.store import CandidateStore


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'candidates.db'}", echo=False)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def store(session_factory):
    async with session_factory() as session:
        yield CandidateStore(session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CandidateCache(max_entries=100, default_ttl=600, timer=clock)


@pytest.fixture
def upserter(cache):
    return CandidateUpserter(cache, ttl=600)


@pytest.fixture
def fetch_rows(session_factory):
    """Read candidate rows with a fresh session, as plain records."""

    async def _fetch(email: str | None = None) -> list[CandidateRecord]:
        query = select(models.Candidate).order_by(models.Candidate.id)
        if email is not None:
            query = query.where(models.Candidate.email == email)
        async with session_factory() as session:
            rows = (await session.execute(query)).scalars().all()
            return [CandidateRecord.from_row(row) for row in rows]

    return _fetch


@pytest.fixture
def seed(session_factory):
    """Insert a candidate directly, bypassing the upserter and its cache."""

    async def _seed(**overrides) -> CandidateRecord:
        record = make_candidate(**overrides)
        async with session_factory() as session:
            stored = await CandidateStore(session).insert(record)
            await session.commit()
        return stored

    return _seed


@pytest.fixture
async def client(session_factory, upserter):
    """FastAPI test client wired to the test database and a fresh upserter."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_upserter] = lambda: upserter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def make_candidate(**overrides) -> CandidateRecord:
    values = {
        "email": "john.doe@example.com",
        "first_name": "John",
        "last_name": "Doe",
        "comments": "Strong backend profile",
    }
    values.update(overrides)
    return CandidateRecord(**values)


@pytest.fixture
def new_candidate():
    """Factory for valid candidates; keyword arguments override fields."""
    return make_candidate
