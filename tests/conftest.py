"""Shared test fixtures: in-memory SQLite, fake Redis, FastAPI test app."""

from collections.abc import AsyncGenerator

import fakeredis
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fedmarket.config import settings
from fedmarket.db.models import Base
from fedmarket.db.repositories import TaskRepository, UserRepository


@pytest.fixture(autouse=True)
def no_artificial_delays(monkeypatch):
    """Simulated compute time only paces wall-clock; tests skip it."""
    monkeypatch.setattr(settings, "round_delay_min_seconds", 0.0)
    monkeypatch.setattr(settings, "round_delay_max_seconds", 0.0)
    monkeypatch.setattr(settings, "synthesis_epoch_delay_seconds", 0.0)


@pytest.fixture
async def db_engine():
    """In-memory SQLite async engine."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Async session bound to the test engine."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def fake_redis():
    """Fake Redis instance, flushed between tests."""
    r = fakeredis.aioredis.FakeRedis()
    yield r
    await r.flushall()
    await r.aclose()


@pytest.fixture
async def app(db_session: AsyncSession):
    """FastAPI app with DB session overridden to use test SQLite."""
    from fedmarket.api.app import create_app
    from fedmarket.db.engine import get_session

    test_app = create_app()

    async def _override_get_session():
        yield db_session

    test_app.dependency_overrides[get_session] = _override_get_session
    return test_app


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client for the test FastAPI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def contributor(db_session: AsyncSession):
    return await UserRepository(db_session).create(
        name="Ada", email="ada@example.com", wallet_address="0xada"
    )


@pytest.fixture
async def make_task(db_session: AsyncSession, contributor):
    """Factory for tasks owned by the default contributor."""

    async def _make(**overrides):
        fields = {
            "title": "Fraud detection",
            "description": "Improve transaction fraud classifier",
            "dataset_uri": "ipfs://QmDataset",
            "target_accuracy": 0.95,
            "current_accuracy": 0.0,
            "reward_pool": 5000.0,
            "status": "PENDING",
            "creator_id": contributor.id,
        }
        fields.update(overrides)
        return await TaskRepository(db_session).create(**fields)

    return _make
