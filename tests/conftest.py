"""
Test configuration and fixtures.
"""
import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from airport_risk.aggregator import RiskAggregator
from airport_risk.cache import TTLPolicy
from airport_risk.config import settings
from airport_risk.db import Base, get_session
from airport_risk.feeds import FeedError, FeedOk
from airport_risk.main import app, get_aggregator, get_wildlife_provider
from airport_risk.weather import DEFAULT_TTL, WeatherProvider
from airport_risk.wildlife import WildlifeHazardProvider

# Use in-memory async SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CALM_PAYLOAD = {
    "main": {"temp": 24.0},
    "wind": {"speed": 3.0},
    "visibility": 10000,
    "weather": [{"main": "Clear"}],
}


class FakeClock:
    """Manually advanced clock for cache and time-travel tests."""

    def __init__(self, start=None):
        self.now = start or datetime.datetime(2025, 10, 1, 12, 0, tzinfo=datetime.timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += datetime.timedelta(**kwargs)


class FakeWeatherFeed:
    """Records every query and answers with a fixed payload or error."""

    def __init__(self, payload=None, error=None):
        self.payload = CALM_PAYLOAD if payload is None else payload
        self.error = error
        self.calls = []

    async def __call__(self, query_name):
        self.calls.append(query_name)
        if self.error is not None:
            return FeedError(self.error)
        return FeedOk(self.payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def weather_feed():
    return FakeWeatherFeed()


@pytest.fixture
def weather_provider(weather_feed, clock):
    return WeatherProvider(weather_feed, policy=TTLPolicy(DEFAULT_TTL, clock), timeout=1.0)


@pytest.fixture
def dataset_path():
    return settings.WILDLIFE_DATASET_PATH


@pytest_asyncio.fixture
async def wildlife_provider(dataset_path, clock):
    provider = WildlifeHazardProvider(dataset_path, clock=clock)
    await provider.start()
    yield provider
    await provider.stop()


@pytest.fixture
def aggregator(weather_provider, wildlife_provider, clock):
    return RiskAggregator(weather_provider, wildlife_provider, clock=clock)


@pytest_asyncio.fixture
async def client(aggregator, wildlife_provider):
    """
    HTTP client against the app with a fresh in-memory database and the
    risk engine wired to fake feeds.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestingSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    app.dependency_overrides[get_wildlife_provider] = lambda: wildlife_provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await test_engine.dispose()
    app.dependency_overrides.clear()
