"""Machine journey Pydantic schemas.

These models are both the domain types handled by the workflow engine and the
wire format of the API and the backup document. Field names are snake_case in
Python and camelCase on the wire (``barcodeId``, ``checkinTime``, ...).
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Read timestamps without an offset as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OperatorRef(CamelModel):
    """Operator identity as stamped onto a station visit."""

    name: str = Field(..., min_length=1, max_length=100)
    epf: str = Field(..., min_length=1, max_length=20)


class MachineRecord(CamelModel):
    """One station visit, from check-in to check-out."""

    barcode_id: str
    workstation: int
    operator: OperatorRef
    checkin_time: UtcDatetime
    checkout_time: UtcDatetime | None = None
    wait_time: int | None = Field(None, description="Estimated wait in milliseconds")
    tasks_completed: list[str] = Field(default_factory=list)
    total_tasks: int = 0

    @property
    def is_open(self) -> bool:
        return self.checkout_time is None


class MachineJourney(CamelModel):
    """The full lifecycle of one physical machine across all stations."""

    barcode_id: str
    current_workstation: int | None = None
    completed_workstations: list[int] = Field(default_factory=list)
    records: list[MachineRecord] = Field(default_factory=list)
    start_time: UtcDatetime
    end_time: UtcDatetime | None = None

    def open_record(self, workstation: int | None = None) -> MachineRecord | None:
        """Return the record still awaiting check-out, optionally at a given station."""
        for record in self.records:
            if record.is_open and (workstation is None or record.workstation == workstation):
                return record
        return None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


class QueueEntry(CamelModel):
    """A machine waiting at (or being served by) a workstation."""

    barcode_id: str
    checkin_time: UtcDatetime
    wait_time: int | None
    operator: OperatorRef


class CompletedMachine(CamelModel):
    """Summary of a journey that has left the final workstation."""

    barcode_id: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    total_duration: int = Field(..., description="end_time - start_time in milliseconds")
    completed_workstations: list[int]
    records: list[MachineRecord]


class BackupDocument(CamelModel):
    """Full database snapshot: ``{"machines": {...}, "lastUpdated": ...}``."""

    machines: dict[str, MachineJourney] = Field(default_factory=dict)
    last_updated: UtcDatetime


# ----- Requests / responses -----


class CheckInRequest(CamelModel):
    """Scan of a machine barcode at a workstation."""

    barcode_id: str = Field(..., min_length=1, max_length=100)
    workstation: int = Field(..., ge=1)
    operator: OperatorRef


class CheckInResponse(CamelModel):
    is_new: bool
    wait_time: int | None
    message: str


class CheckOutRequest(CamelModel):
    """Completion of a machine at a workstation."""

    barcode_id: str = Field(..., min_length=1, max_length=100)
    workstation: int = Field(..., ge=1)
    tasks_completed: list[str] = Field(default_factory=list)
    total_tasks: int | None = Field(
        None, ge=0, description="Defaults to the station's configured task count"
    )


class OperationResponse(CamelModel):
    success: bool
    message: str
