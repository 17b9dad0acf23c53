"""Machine check-in/check-out API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from machine_service.api.v1.deps import get_workflow_service, raise_for_outcome
from machine_service.schemas.journey import (
    CheckInRequest,
    CheckInResponse,
    CheckOutRequest,
    CompletedMachine,
    MachineJourney,
    OperationResponse,
    ensure_utc,
)
from machine_service.services.workflow import WorkflowService

router = APIRouter(prefix="/machines", tags=["machines"])


@router.post("/check-in", response_model=CheckInResponse)
async def check_in_machine(
    payload: CheckInRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> CheckInResponse:
    """Check a scanned machine in to a workstation.

    Stations after the first require the previous station to be completed.
    """
    gate = await service.check_predecessor(payload.barcode_id, payload.workstation)
    raise_for_outcome(gate)

    outcome = await service.check_in(payload.barcode_id, payload.workstation, payload.operator)
    raise_for_outcome(outcome)
    return CheckInResponse(is_new=outcome.is_new, wait_time=outcome.wait_time, message=outcome.message)


@router.post("/check-out", response_model=OperationResponse)
async def check_out_machine(
    payload: CheckOutRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> OperationResponse:
    """Check a machine out of its workstation with the tasks ticked off."""
    outcome = await service.check_out(
        payload.barcode_id,
        payload.workstation,
        payload.tasks_completed,
        payload.total_tasks,
    )
    raise_for_outcome(outcome)
    return OperationResponse(success=True, message=outcome.message)


@router.get("/completed", response_model=list[CompletedMachine])
async def list_completed_machines(
    start: datetime = Query(...),
    end: datetime = Query(..., description="Inclusive; pass an end-of-day instant for whole days"),
    service: WorkflowService = Depends(get_workflow_service),
) -> list[CompletedMachine]:
    """Machines that left the final workstation between start and end."""
    start, end = ensure_utc(start), ensure_utc(end)
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")
    return await service.get_completed_machines(start, end)


@router.get("/{barcode_id}", response_model=MachineJourney)
async def get_machine(
    barcode_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> MachineJourney:
    """Get a machine's full journey."""
    journey = await service.get_machine_journey(barcode_id)
    if journey is None:
        raise HTTPException(status_code=404, detail=f"Machine {barcode_id} not found")
    return journey


@router.delete("/{barcode_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_machine(
    barcode_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> None:
    """Delete a machine and all its station records."""
    outcome = await service.delete_machine(barcode_id)
    raise_for_outcome(outcome)
