"""Workflow engine for machines moving through the service workstations.

Covers check-in, check-out, queue ordering, journey lookup, the completed
machine report query, deletion, and backup export/import. Every operation is a
read-modify-write over a :class:`JourneyStore`; there is no locking, so two
sessions checking in the same barcode at the same instant can both succeed.

Business-rule failures (conflict, not found, out-of-sequence, invalid input)
and store failures on mutations are reported through the returned outcome
instead of raising. Read queries let :class:`StoreError` propagate after
logging it.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import ValidationError

from machine_service.core.workstations import (
    FINAL_WORKSTATION,
    FIRST_WORKSTATION,
    get_workstation,
    is_valid_workstation,
)
from machine_service.schemas.journey import (
    BackupDocument,
    CompletedMachine,
    MachineJourney,
    MachineRecord,
    OperatorRef,
    QueueEntry,
    ensure_utc,
)
from machine_service.services.journey_store import JourneyStore, StoreError
from machine_service.services.wait_estimator import LinearWaitEstimator, WaitTimeEstimator

logger = logging.getLogger(__name__)

BACKUP_REQUIRED_KEYS = ("machines", "lastUpdated")


class WorkflowErrorKind(str, Enum):
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    SEQUENCE = "sequence"
    VALIDATION = "validation"
    STORE_FAILURE = "store_failure"


@dataclass
class OperationOutcome:
    """Result of a workflow mutation with a user-facing message."""

    ok: bool
    message: str
    error: WorkflowErrorKind | None = None


@dataclass
class CheckInOutcome(OperationOutcome):
    is_new: bool = False
    wait_time: int | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _failure(kind: WorkflowErrorKind, message: str) -> OperationOutcome:
    return OperationOutcome(ok=False, message=message, error=kind)


class WorkflowService:
    """Check-in/check-out state machine over a journey store."""

    def __init__(
        self,
        store: JourneyStore,
        wait_estimator: WaitTimeEstimator | None = None,
        enforce_sequence: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.wait_estimator = wait_estimator or LinearWaitEstimator()
        self.enforce_sequence = enforce_sequence
        self.clock = clock

    # -------------------------------------------------------------------
    # Check-in / check-out
    # -------------------------------------------------------------------

    async def check_in(
        self, barcode_id: str, workstation: int, operator: OperatorRef
    ) -> CheckInOutcome:
        """Check a machine in to a workstation, creating its journey on first sight."""
        if not is_valid_workstation(workstation):
            return CheckInOutcome(
                ok=False,
                message=f"Workstation {workstation} does not exist",
                error=WorkflowErrorKind.VALIDATION,
            )

        try:
            journeys = await self.store.load_all()
        except StoreError:
            logger.exception("Check-in of %s failed loading journeys", barcode_id)
            return self._store_failed_check_in(barcode_id)

        now = self.clock()
        journey = journeys.get(barcode_id)

        if journey is not None and journey.current_workstation is not None:
            message = (
                f"Machine {barcode_id} is already in workstation {journey.current_workstation}"
            )
            logger.warning("%s", message)
            return CheckInOutcome(ok=False, message=message, error=WorkflowErrorKind.CONFLICT)

        if self.enforce_sequence:
            gate = self._predecessor_gate(journey, barcode_id, workstation)
            if not gate.ok:
                logger.warning("%s", gate.message)
                return CheckInOutcome(ok=False, message=gate.message, error=gate.error)

        is_new = journey is None
        if journey is None:
            journey = MachineJourney(
                barcode_id=barcode_id,
                current_workstation=workstation,
                completed_workstations=[],
                records=[],
                start_time=now,
            )

        ahead = sum(
            1
            for other in journeys.values()
            if other.current_workstation == workstation and other.barcode_id != barcode_id
        )
        wait_time = self.wait_estimator(ahead)

        journey.records.append(
            MachineRecord(
                barcode_id=barcode_id,
                workstation=workstation,
                operator=operator,
                checkin_time=now,
                checkout_time=None,
                wait_time=wait_time,
                tasks_completed=[],
                total_tasks=0,
            )
        )
        journey.current_workstation = workstation

        try:
            await self.store.save_all({barcode_id: journey})
        except StoreError:
            logger.exception("Check-in of %s failed saving journey", barcode_id)
            return self._store_failed_check_in(barcode_id)

        logger.info(
            "Machine %s checked in to workstation %s by %s (%s), new=%s, wait_ms=%s",
            barcode_id,
            workstation,
            operator.name,
            operator.epf,
            is_new,
            wait_time,
        )
        if is_new or wait_time is None:
            message = f"Machine {barcode_id} checked in to Workstation {workstation}"
        else:
            message = (
                f"Machine {barcode_id} is in queue. "
                f"Estimated wait: {wait_time // 60000} minutes"
            )
        return CheckInOutcome(ok=True, message=message, is_new=is_new, wait_time=wait_time)

    async def check_out(
        self,
        barcode_id: str,
        workstation: int,
        tasks_completed: list[str],
        total_tasks: int | None = None,
    ) -> OperationOutcome:
        """Check a machine out of its current workstation.

        Any subset of tasks (including none) is accepted. ``total_tasks``
        defaults to the number of tasks configured for the workstation.
        """
        try:
            journeys = await self.store.load_all()
        except StoreError:
            logger.exception("Check-out of %s failed loading journeys", barcode_id)
            return _failure(WorkflowErrorKind.STORE_FAILURE, "Failed to complete machine. Please try again")

        journey = journeys.get(barcode_id)
        if journey is None or journey.current_workstation != workstation:
            message = f"Machine {barcode_id} is not checked in to workstation {workstation}"
            logger.warning("%s", message)
            return _failure(WorkflowErrorKind.NOT_FOUND, message)

        record = journey.open_record(workstation)
        if record is None:
            message = f"No active record found for machine {barcode_id} in workstation {workstation}"
            logger.warning("%s", message)
            return _failure(WorkflowErrorKind.NOT_FOUND, message)

        if total_tasks is None:
            config = get_workstation(workstation)
            total_tasks = config.task_count if config else len(tasks_completed)

        now = self.clock()
        record.checkout_time = now
        record.tasks_completed = list(tasks_completed)
        record.total_tasks = total_tasks

        journey.completed_workstations.append(workstation)
        journey.current_workstation = None
        if workstation == FINAL_WORKSTATION:
            journey.end_time = now

        try:
            await self.store.save_all({barcode_id: journey})
        except StoreError:
            logger.exception("Check-out of %s failed saving journey", barcode_id)
            return _failure(WorkflowErrorKind.STORE_FAILURE, "Failed to complete machine. Please try again")

        logger.info(
            "Machine %s checked out of workstation %s with %s/%s tasks",
            barcode_id,
            workstation,
            len(record.tasks_completed),
            total_tasks,
        )
        if journey.end_time is not None:
            message = "Machine service process completed! Data saved to report."
        else:
            message = f"Machine {barcode_id} ready for Workstation {workstation + 1}"
        return OperationOutcome(ok=True, message=message)

    # -------------------------------------------------------------------
    # Sequencing gate
    # -------------------------------------------------------------------

    async def check_predecessor(self, barcode_id: str, workstation: int) -> OperationOutcome:
        """Verify the machine finished the station before ``workstation``."""
        if workstation <= FIRST_WORKSTATION:
            return OperationOutcome(ok=True, message="First workstation")
        try:
            journey = await self.get_machine_journey(barcode_id)
        except StoreError:
            return _failure(WorkflowErrorKind.STORE_FAILURE, "Failed to check in machine. Please try again")
        return self._predecessor_gate(journey, barcode_id, workstation)

    @staticmethod
    def _predecessor_gate(
        journey: MachineJourney | None, barcode_id: str, workstation: int
    ) -> OperationOutcome:
        if workstation <= FIRST_WORKSTATION:
            return OperationOutcome(ok=True, message="First workstation")
        if journey is None:
            return _failure(
                WorkflowErrorKind.NOT_FOUND,
                f"Machine {barcode_id} has not been registered in the system",
            )
        previous = workstation - 1
        if previous not in journey.completed_workstations:
            return _failure(
                WorkflowErrorKind.SEQUENCE,
                f"Machine {barcode_id} has not completed Workstation {previous}",
            )
        return OperationOutcome(ok=True, message=f"Workstation {previous} completed")

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------

    async def _load(self) -> dict[str, MachineJourney]:
        try:
            return await self.store.load_all()
        except StoreError:
            logger.exception("Failed to load journeys")
            raise

    async def get_queue_for_workstation(self, workstation: int) -> list[QueueEntry]:
        """Machines at a workstation, oldest check-in first.

        Equal check-in times keep the store's iteration order.
        """
        entries: list[QueueEntry] = []
        for journey in (await self._load()).values():
            if journey.current_workstation != workstation:
                continue
            record = journey.open_record(workstation)
            if record is None:
                logger.warning(
                    "Machine %s is at workstation %s without an open record",
                    journey.barcode_id,
                    workstation,
                )
                continue
            entries.append(
                QueueEntry(
                    barcode_id=journey.barcode_id,
                    checkin_time=record.checkin_time,
                    wait_time=record.wait_time,
                    operator=record.operator,
                )
            )
        return sorted(entries, key=lambda e: e.checkin_time)

    async def get_machine_journey(self, barcode_id: str) -> MachineJourney | None:
        return (await self._load()).get(barcode_id)

    async def get_completed_machines(
        self, start: datetime, end: datetime
    ) -> list[CompletedMachine]:
        """Journeys whose end time lies in ``[start, end]`` (both inclusive)."""
        start, end = ensure_utc(start), ensure_utc(end)
        completed: list[CompletedMachine] = []
        for journey in (await self._load()).values():
            if not journey.is_complete:
                continue
            if not (start <= journey.end_time <= end):
                continue
            duration = journey.end_time - journey.start_time
            completed.append(
                CompletedMachine(
                    barcode_id=journey.barcode_id,
                    start_time=journey.start_time,
                    end_time=journey.end_time,
                    total_duration=duration // timedelta(milliseconds=1),
                    completed_workstations=list(journey.completed_workstations),
                    records=journey.records,
                )
            )
        return completed

    async def get_journeys(self, barcode_ids: list[str]) -> list[MachineJourney]:
        """Full journeys for the given barcodes, skipping unknown ones."""
        journeys = await self._load()
        return [journeys[b] for b in barcode_ids if b in journeys]

    # -------------------------------------------------------------------
    # Deletion and backups
    # -------------------------------------------------------------------

    async def delete_machine(self, barcode_id: str) -> OperationOutcome:
        """Remove a journey and all its records. Irreversible."""
        try:
            removed = await self.store.delete_one(barcode_id)
        except StoreError:
            logger.exception("Failed to delete machine %s", barcode_id)
            return _failure(WorkflowErrorKind.STORE_FAILURE, f"Failed to delete machine {barcode_id}")
        if not removed:
            return _failure(WorkflowErrorKind.NOT_FOUND, f"Machine {barcode_id} not found")
        logger.info("Machine %s deleted", barcode_id)
        return OperationOutcome(ok=True, message=f"Machine {barcode_id} deleted")

    async def clear_database(self) -> OperationOutcome:
        try:
            await self.store.clear()
        except StoreError:
            logger.exception("Failed to clear journeys")
            return _failure(WorkflowErrorKind.STORE_FAILURE, "Failed to clear database")
        logger.info("All machine journeys cleared")
        return OperationOutcome(ok=True, message="Database cleared")

    async def export_database(self) -> BackupDocument:
        journeys = await self._load()
        try:
            last_updated = await self.store.last_updated()
        except StoreError:
            logger.exception("Failed to read last update time")
            raise
        return BackupDocument(machines=journeys, last_updated=last_updated or self.clock())

    async def import_database(self, document: Mapping[str, Any]) -> OperationOutcome:
        """Replace all journeys with the contents of a backup document.

        Only the presence of ``machines`` and ``lastUpdated`` is checked up
        front; any journey that fails to parse aborts the whole import.
        """
        if not isinstance(document, Mapping) or any(k not in document for k in BACKUP_REQUIRED_KEYS):
            return _failure(
                WorkflowErrorKind.VALIDATION,
                "Invalid backup file: expected 'machines' and 'lastUpdated'",
            )
        try:
            backup = BackupDocument.model_validate(document)
        except ValidationError as exc:
            logger.warning("Rejected backup import: %s", exc)
            return _failure(WorkflowErrorKind.VALIDATION, f"Invalid backup file: {exc.error_count()} errors")

        try:
            await self.store.clear()
            await self.store.save_all(backup.machines)
        except StoreError:
            logger.exception("Backup import failed while writing journeys")
            return _failure(WorkflowErrorKind.STORE_FAILURE, "Failed to import backup")

        logger.info("Imported %s machine journeys", len(backup.machines))
        return OperationOutcome(ok=True, message=f"Imported {len(backup.machines)} machines")

    @staticmethod
    def _store_failed_check_in(barcode_id: str) -> CheckInOutcome:
        return CheckInOutcome(
            ok=False,
            message=f"Failed to check in machine {barcode_id}. Please try again",
            error=WorkflowErrorKind.STORE_FAILURE,
        )
