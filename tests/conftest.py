"""Pytest configuration with fixtures for async testing."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from machine_service.core.database import Base
from machine_service.schemas.journey import MachineJourney, MachineRecord, OperatorRef
from machine_service.services.journey_store import MemoryJourneyStore
from machine_service.services.workflow import WorkflowService

import machine_service.models  # noqa: F401

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Test Data Factories
# ---------------------------------------------------------------------------


class OperatorFactory:
    """Factory for operator references stamped on records."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> OperatorRef:
        cls._counter += 1
        defaults = {"name": f"Operator {cls._counter}", "epf": f"{1000 + cls._counter}"}
        return OperatorRef(**{**defaults, **overrides})


class RecordFactory:
    """Factory for MachineRecord instances."""

    @classmethod
    def create(cls, **overrides: Any) -> MachineRecord:
        defaults = {
            "barcode_id": "BC-0001",
            "workstation": 1,
            "operator": OperatorFactory.create(),
            "checkin_time": T0,
            "checkout_time": T0 + timedelta(minutes=30),
            "wait_time": None,
            "tasks_completed": ["ws1_task1", "ws1_task2"],
            "total_tasks": 11,
        }
        return MachineRecord(**{**defaults, **overrides})


class JourneyFactory:
    """Factory for MachineJourney instances."""

    _counter = 0

    @classmethod
    def create(cls, **overrides: Any) -> MachineJourney:
        cls._counter += 1
        defaults = {
            "barcode_id": f"BC-{cls._counter:04d}",
            "current_workstation": None,
            "completed_workstations": [],
            "records": [],
            "start_time": T0,
            "end_time": None,
        }
        return MachineJourney(**{**defaults, **overrides})

    @classmethod
    def completed(cls, barcode_id: str, start: datetime = T0, hours: float = 6.0) -> MachineJourney:
        """A journey that has passed through all six stations."""
        records = []
        step = timedelta(hours=hours) / 6
        for station in range(1, 7):
            checkin = start + step * (station - 1)
            records.append(
                RecordFactory.create(
                    barcode_id=barcode_id,
                    workstation=station,
                    checkin_time=checkin,
                    checkout_time=checkin + step,
                    tasks_completed=[f"ws{station}_task1"],
                    total_tasks=6,
                )
            )
        return cls.create(
            barcode_id=barcode_id,
            completed_workstations=[1, 2, 3, 4, 5, 6],
            records=records,
            start_time=start,
            end_time=start + timedelta(hours=hours),
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def journey_factory():
    """Provide JourneyFactory for tests."""
    JourneyFactory._counter = 0
    return JourneyFactory


@pytest.fixture
def record_factory():
    return RecordFactory


@pytest.fixture
def alice() -> OperatorRef:
    return OperatorRef(name="Alice", epf="2258")


@pytest.fixture
def bob() -> OperatorRef:
    return OperatorRef(name="Bob", epf="5338")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryJourneyStore:
    return MemoryJourneyStore()


@pytest.fixture
def workflow(memory_store, clock) -> WorkflowService:
    """Workflow engine over an empty in-memory store with a fake clock."""
    return WorkflowService(memory_store, clock=clock)


@pytest.fixture
def mock_db():
    """Provide a mock AsyncSession for unit tests."""
    session = AsyncMock(spec=AsyncSession)
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest_asyncio.fixture
async def sqlite_session():
    """A real AsyncSession on an in-memory SQLite database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
