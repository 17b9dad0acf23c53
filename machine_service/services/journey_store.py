"""Persistence backends for machine journeys.

Every backend implements the same small contract used by the workflow engine:

- ``load_all()``: every journey keyed by barcode, in insertion order
- ``save_all(journeys)``: upsert, last write wins, no concurrency token
- ``delete_one(barcode_id)``: remove a journey and its records
- ``clear()``: remove everything
- ``last_updated()``: timestamp of the most recent write

Backends raise :class:`StoreError` for any underlying storage failure. There is
no transactional guarantee across journeys in a single ``save_all`` on the
Redis backend; the SQL backend only flushes and leaves the commit to the
session owner.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from machine_service.models.journey import MachineJourneyRow, MachineRecordRow
from machine_service.schemas.journey import MachineJourney, MachineRecord, OperatorRef

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying persistence call fails."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JourneyStore(ABC):
    """Key-value persistence of machine journeys."""

    @abstractmethod
    async def load_all(self) -> dict[str, MachineJourney]:
        """Return every journey keyed by barcode."""

    @abstractmethod
    async def save_all(self, journeys: Mapping[str, MachineJourney]) -> None:
        """Upsert the given journeys."""

    @abstractmethod
    async def delete_one(self, barcode_id: str) -> bool:
        """Delete a journey and its records. Returns False if it did not exist."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every journey."""

    @abstractmethod
    async def last_updated(self) -> datetime | None:
        """Timestamp of the most recent write, if any."""


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryJourneyStore(JourneyStore):
    """Process-local store; contents are lost on restart."""

    def __init__(self) -> None:
        self._journeys: dict[str, MachineJourney] = {}
        self._last_updated: datetime | None = None

    async def load_all(self) -> dict[str, MachineJourney]:
        # Deep copies so callers cannot mutate stored state without saving.
        return {k: v.model_copy(deep=True) for k, v in self._journeys.items()}

    async def save_all(self, journeys: Mapping[str, MachineJourney]) -> None:
        for barcode_id, journey in journeys.items():
            self._journeys[barcode_id] = journey.model_copy(deep=True)
        self._last_updated = _now()

    async def delete_one(self, barcode_id: str) -> bool:
        removed = self._journeys.pop(barcode_id, None) is not None
        if removed:
            self._last_updated = _now()
        return removed

    async def clear(self) -> None:
        self._journeys.clear()
        self._last_updated = _now()

    async def last_updated(self) -> datetime | None:
        return self._last_updated


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisJourneyStore(JourneyStore):
    """Journeys held in one Redis hash, one JSON document per barcode."""

    def __init__(self, redis: aioredis.Redis, prefix: str = "machineServiceDB") -> None:
        self.redis = redis
        self.journeys_key = f"{prefix}:journeys"
        self.last_updated_key = f"{prefix}:last_updated"

    async def load_all(self) -> dict[str, MachineJourney]:
        try:
            raw = await self.redis.hgetall(self.journeys_key)
        except RedisError as exc:
            raise StoreError(f"Failed to load journeys from Redis: {exc}") from exc
        journeys = {}
        for barcode_id, payload in raw.items():
            try:
                journeys[barcode_id] = MachineJourney.model_validate_json(payload)
            except ValidationError as exc:
                raise StoreError(f"Unreadable journey {barcode_id} in Redis: {exc}") from exc
        return journeys

    async def save_all(self, journeys: Mapping[str, MachineJourney]) -> None:
        if not journeys:
            return
        mapping = {
            barcode_id: journey.model_dump_json(by_alias=True)
            for barcode_id, journey in journeys.items()
        }
        try:
            pipe = self.redis.pipeline(transaction=False)
            pipe.hset(self.journeys_key, mapping=mapping)
            pipe.set(self.last_updated_key, _now().isoformat())
            await pipe.execute()
        except RedisError as exc:
            raise StoreError(f"Failed to save journeys to Redis: {exc}") from exc

    async def delete_one(self, barcode_id: str) -> bool:
        try:
            removed = await self.redis.hdel(self.journeys_key, barcode_id)
            if removed:
                await self.redis.set(self.last_updated_key, _now().isoformat())
        except RedisError as exc:
            raise StoreError(f"Failed to delete journey {barcode_id}: {exc}") from exc
        return bool(removed)

    async def clear(self) -> None:
        try:
            await self.redis.delete(self.journeys_key)
            await self.redis.set(self.last_updated_key, _now().isoformat())
        except RedisError as exc:
            raise StoreError(f"Failed to clear journeys: {exc}") from exc

    async def last_updated(self) -> datetime | None:
        try:
            value = await self.redis.get(self.last_updated_key)
        except RedisError as exc:
            raise StoreError(f"Failed to read last update time: {exc}") from exc
        return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# SQL backend
# ---------------------------------------------------------------------------


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _row_to_journey(row: MachineJourneyRow) -> MachineJourney:
    return MachineJourney(
        barcode_id=row.barcode_id,
        current_workstation=row.current_workstation,
        completed_workstations=list(row.completed_workstations or []),
        start_time=_as_utc(row.start_time),
        end_time=_as_utc(row.end_time),
        records=[
            MachineRecord(
                barcode_id=r.barcode_id,
                workstation=r.workstation,
                operator=OperatorRef(name=r.operator_name, epf=r.operator_epf),
                checkin_time=_as_utc(r.checkin_time),
                checkout_time=_as_utc(r.checkout_time),
                wait_time=r.wait_time_ms,
                tasks_completed=list(r.tasks_completed or []),
                total_tasks=r.total_tasks,
            )
            for r in row.records
        ],
    )


def _record_to_row(record: MachineRecord) -> MachineRecordRow:
    return MachineRecordRow(
        workstation=record.workstation,
        operator_name=record.operator.name,
        operator_epf=record.operator.epf,
        checkin_time=record.checkin_time,
        checkout_time=record.checkout_time,
        wait_time_ms=record.wait_time,
        tasks_completed=list(record.tasks_completed),
        total_tasks=record.total_tasks,
    )


class SqlJourneyStore(JourneyStore):
    """Journeys in the ``machine_journeys``/``machine_records`` tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _fetch_rows(self, barcode_ids: list[str] | None = None) -> list[MachineJourneyRow]:
        query = select(MachineJourneyRow).options(selectinload(MachineJourneyRow.records))
        if barcode_ids is not None:
            query = query.where(MachineJourneyRow.barcode_id.in_(barcode_ids))
        query = query.order_by(MachineJourneyRow.created_at, MachineJourneyRow.barcode_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def load_all(self) -> dict[str, MachineJourney]:
        try:
            rows = await self._fetch_rows()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load journeys: {exc}") from exc
        return {row.barcode_id: _row_to_journey(row) for row in rows}

    async def save_all(self, journeys: Mapping[str, MachineJourney]) -> None:
        if not journeys:
            return
        try:
            existing = {row.barcode_id: row for row in await self._fetch_rows(list(journeys))}
            for barcode_id, journey in journeys.items():
                row = existing.get(barcode_id)
                if row is None:
                    row = MachineJourneyRow(barcode_id=barcode_id)
                    self.db.add(row)
                row.current_workstation = journey.current_workstation
                row.completed_workstations = list(journey.completed_workstations)
                row.start_time = journey.start_time
                row.end_time = journey.end_time
                self._sync_records(row, journey.records)
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to save journeys: {exc}") from exc

    @staticmethod
    def _sync_records(row: MachineJourneyRow, records: list[MachineRecord]) -> None:
        """Update stored records in place by position and append any new ones."""
        stored = list(row.records)
        for index, record in enumerate(records):
            if index < len(stored):
                target = stored[index]
                target.workstation = record.workstation
                target.operator_name = record.operator.name
                target.operator_epf = record.operator.epf
                target.checkin_time = record.checkin_time
                target.checkout_time = record.checkout_time
                target.wait_time_ms = record.wait_time
                target.tasks_completed = list(record.tasks_completed)
                target.total_tasks = record.total_tasks
            else:
                row.records.append(_record_to_row(record))
        # Records beyond the new list are orphaned and deleted by the cascade
        del row.records[len(records):]

    async def delete_one(self, barcode_id: str) -> bool:
        try:
            rows = await self._fetch_rows([barcode_id])
            if not rows:
                return False
            await self.db.delete(rows[0])
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to delete journey {barcode_id}: {exc}") from exc
        return True

    async def clear(self) -> None:
        try:
            await self.db.execute(delete(MachineRecordRow))
            await self.db.execute(delete(MachineJourneyRow))
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to clear journeys: {exc}") from exc

    async def last_updated(self) -> datetime | None:
        try:
            result = await self.db.execute(select(func.max(MachineJourneyRow.updated_at)))
            return _as_utc(result.scalar())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read last update time: {exc}") from exc
