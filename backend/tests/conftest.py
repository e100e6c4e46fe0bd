"""Pytest configuration and fixtures for async testing."""
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import subscriptions.models  # noqa: F401
from subscriptions.database import Base
from subscriptions.utils.temporal import utcnow

# In-memory database shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a fresh in-memory database with all tables for each test.

    Yields:
        AsyncEngine: Engine bound to the test database
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client whose requests run against the test database.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """
    from subscriptions.api.deps import get_session_factory
    from subscriptions.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def cpu_hours(db_session: AsyncSession):
    """Consumable resource type: CPU time in hours."""
    from subscriptions.models.resource_type import ResourceType

    resource_type = ResourceType(name="cpu.time", unit="hours", consumable=True)
    db_session.add(resource_type)
    await db_session.commit()
    return resource_type


@pytest_asyncio.fixture(scope="function")
async def storage_bytes(db_session: AsyncSession):
    """Capacity resource type: stored data in bytes."""
    from subscriptions.models.resource_type import ResourceType

    resource_type = ResourceType(name="data.size", unit="bytes", consumable=False)
    db_session.add(resource_type)
    await db_session.commit()
    return resource_type


@pytest_asyncio.fixture(scope="function")
async def test_plan(db_session: AsyncSession, cpu_hours, storage_bytes):
    """
    Create a subscribable plan for integration tests.

    The plan has a rate in effect and quota defaults of 20 CPU hours and 100
    bytes per period.

    Returns:
        Plan: Test plan instance
    """
    from subscriptions.schemas.plan import PlanCreate, PlanQuotaDefaultCreate, PlanRateCreate
    from subscriptions.services.plan_service import PlanService

    yesterday = utcnow() - timedelta(days=1)
    plan = await PlanService(db_session).create_plan(
        PlanCreate(
            name="Basic",
            description="Entry level plan",
            rates=[PlanRateCreate(rate=Decimal("9.99"), effective_date=yesterday)],
            quota_defaults=[
                PlanQuotaDefaultCreate(resource_type_id=cpu_hours.id, quota_value=20, effective_date=yesterday),
                PlanQuotaDefaultCreate(resource_type_id=storage_bytes.id, quota_value=100, effective_date=yesterday),
            ],
        )
    )
    await db_session.commit()
    return plan


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession):
    """Create a test user."""
    from subscriptions.services.user_service import UserService

    user = await UserService(db_session).get_or_create("alice")
    await db_session.commit()
    return user


@pytest_asyncio.fixture(scope="function")
async def test_subscription(db_session: AsyncSession, test_user, test_plan):
    """Create a one-period subscription of the test user to the test plan."""
    from subscriptions.services.subscription_service import SubscriptionService

    subscription = await SubscriptionService(db_session).create_subscription(test_user.id, test_plan.id)
    await db_session.commit()
    return subscription
