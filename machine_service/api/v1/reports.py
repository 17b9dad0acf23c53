"""Service report export and database backup API endpoints."""

from datetime import date, datetime, time, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from machine_service.api.v1.deps import get_workflow_service, raise_for_outcome
from machine_service.schemas.journey import BackupDocument, OperationResponse
from machine_service.services.report_export import (
    XLSX_MEDIA_TYPE,
    date_range_label,
    export_workbook,
    report_filename,
)
from machine_service.services.workflow import WorkflowService

router = APIRouter(tags=["reports"])


@router.get("/reports/export")
async def export_report(
    start: date = Query(...),
    end: date = Query(...),
    include_journey: bool = Query(True),
    service: WorkflowService = Depends(get_workflow_service),
) -> Response:
    """Download the Excel report of machines completed between two dates.

    The end date covers the whole day.
    """
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")
    start_at = datetime.combine(start, time.min, tzinfo=timezone.utc)
    end_at = datetime.combine(end, time.max, tzinfo=timezone.utc)

    completed = await service.get_completed_machines(start_at, end_at)
    journeys = await service.get_journeys([c.barcode_id for c in completed])
    content = export_workbook(journeys, include_journey_sheet=include_journey)

    filename = report_filename(date_range_label(start_at, end_at))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/backup", response_model=BackupDocument)
async def export_backup(
    service: WorkflowService = Depends(get_workflow_service),
) -> BackupDocument:
    """Download every machine journey as a JSON backup document."""
    return await service.export_database()


@router.post("/backup", response_model=OperationResponse)
async def import_backup(
    document: dict[str, Any] = Body(...),
    service: WorkflowService = Depends(get_workflow_service),
) -> OperationResponse:
    """Replace all machine journeys with a backup document."""
    outcome = await service.import_database(document)
    raise_for_outcome(outcome)
    return OperationResponse(success=True, message=outcome.message)


@router.delete("/backup", response_model=OperationResponse)
async def clear_database(
    service: WorkflowService = Depends(get_workflow_service),
) -> OperationResponse:
    """Remove every machine journey."""
    outcome = await service.clear_database()
    raise_for_outcome(outcome)
    return OperationResponse(success=True, message=outcome.message)
