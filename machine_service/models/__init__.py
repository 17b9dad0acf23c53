"""SQLAlchemy ORM models."""

from machine_service.models.journey import MachineJourneyRow, MachineRecordRow
from machine_service.models.operator import Operator

__all__ = [
    "MachineJourneyRow",
    "MachineRecordRow",
    "Operator",
]
