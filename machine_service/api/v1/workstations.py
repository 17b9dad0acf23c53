"""Workstation configuration and queue API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from machine_service.api.v1.deps import get_workflow_service
from machine_service.core.workstations import WORKSTATIONS, WorkstationConfig, get_workstation
from machine_service.schemas.journey import QueueEntry
from machine_service.schemas.workstation import TaskResponse, WorkstationResponse
from machine_service.services.workflow import WorkflowService

router = APIRouter(prefix="/workstations", tags=["workstations"])


def _to_response(workstation: WorkstationConfig) -> WorkstationResponse:
    return WorkstationResponse(
        station_number=workstation.station_number,
        station_name=workstation.station_name,
        tasks=[TaskResponse(id=t.id, description=t.description) for t in workstation.tasks],
    )


def _require_workstation(station_number: int) -> WorkstationConfig:
    workstation = get_workstation(station_number)
    if workstation is None:
        raise HTTPException(status_code=404, detail="Workstation not found")
    return workstation


@router.get("", response_model=list[WorkstationResponse])
async def list_workstations() -> list[WorkstationResponse]:
    """List the service workstations and their task checklists."""
    return [_to_response(ws) for ws in WORKSTATIONS]


@router.get("/{station_number}", response_model=WorkstationResponse)
async def get_workstation_config(station_number: int) -> WorkstationResponse:
    return _to_response(_require_workstation(station_number))


@router.get("/{station_number}/queue", response_model=list[QueueEntry])
async def get_workstation_queue(
    station_number: int,
    service: WorkflowService = Depends(get_workflow_service),
) -> list[QueueEntry]:
    """Machines at a workstation, next to serve first."""
    _require_workstation(station_number)
    return await service.get_queue_for_workstation(station_number)
