"""Workstation configuration Pydantic schemas."""

from pydantic import BaseModel


class TaskResponse(BaseModel):
    id: str
    description: str


class WorkstationResponse(BaseModel):
    """Schema for a configured workstation and its checklist."""

    station_number: int
    station_name: str
    tasks: list[TaskResponse]
