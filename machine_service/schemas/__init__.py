"""Pydantic v2 schemas for request/response validation."""

from machine_service.schemas.journey import (
    BackupDocument,
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    CompletedMachine,
    MachineJourney,
    MachineRecord,
    OperationResponse,
    OperatorRef,
    QueueEntry,
)
from machine_service.schemas.operator import OperatorCreate, OperatorResponse
from machine_service.schemas.workstation import TaskResponse, WorkstationResponse

__all__ = [
    "BackupDocument",
    "CheckInRequest",
    "CheckInResponse",
    "CheckOutRequest",
    "CompletedMachine",
    "MachineJourney",
    "MachineRecord",
    "OperationResponse",
    "OperatorCreate",
    "OperatorRef",
    "OperatorResponse",
    "QueueEntry",
    "TaskResponse",
    "WorkstationResponse",
]
