"""Pytest fixtures for timecard engine tests."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timecard_engine.calculators.types import Punches
from timecard_engine.config import Settings
from timecard_engine.models import Base, TimecardHeader
from timecard_engine.services import Actor, AuditTrailService, TimecardService

# In-memory SQLite with async support; StaticPool keeps one shared connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PERIOD_START = date(2024, 3, 4)
PERIOD_END = date(2024, 3, 6)


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": TEST_DATABASE_URL,
        "engine_version": "test",
        "default_break_minutes": 30,
        "break_grace_minutes": 5,
        "allow_approved_reopen": False,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def timecard_service(session: AsyncSession, settings: Settings) -> TimecardService:
    return TimecardService(session, settings=settings)


@pytest.fixture
def audit_service(session: AsyncSession, timecard_service: TimecardService) -> AuditTrailService:
    return AuditTrailService(session, timecard_service=timecard_service)


@pytest.fixture
def worker() -> Actor:
    return Actor(user_id=uuid4(), role="worker")


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=uuid4(), role="admin")


@pytest.fixture
async def header(timecard_service: TimecardService, worker: Actor) -> TimecardHeader:
    """A draft, hourly, three-day timecard at $20/hour with no days recorded."""
    return await timecard_service.start_period(
        worker_id=worker.user_id,
        project_id=uuid4(),
        period_start_date=PERIOD_START,
        period_end_date=PERIOD_END,
        pay_rate=Decimal("20"),
    )


@pytest.fixture
async def recorded_header(
    timecard_service: TimecardService, header: TimecardHeader
) -> TimecardHeader:
    """The draft timecard with two full days recorded.

    day_0: 09:00-17:00, break 12:00-12:30 -> 7.50 h, $150.00
    day_1: 10:00-16:00, no break         -> 6.00 h, $120.00
    """
    await timecard_service.record_daily_entry(
        header.timecard_header_id,
        PERIOD_START,
        Punches(
            check_in=time(9, 0),
            break_start=time(12, 0),
            break_end=time(12, 30),
            check_out=time(17, 0),
        ),
    )
    await timecard_service.record_daily_entry(
        header.timecard_header_id,
        date(2024, 3, 5),
        Punches(check_in=time(10, 0), check_out=time(16, 0)),
    )
    return header


@pytest.fixture
async def rejected_header(
    timecard_service: TimecardService,
    recorded_header: TimecardHeader,
    worker: Actor,
    admin: Actor,
) -> TimecardHeader:
    """The recorded timecard after submission and rejection."""
    await timecard_service.submit(recorded_header.timecard_header_id, worker)
    await timecard_service.reject(
        recorded_header.timecard_header_id, admin, reason="Check-in on day 1 is wrong"
    )
    return recorded_header
