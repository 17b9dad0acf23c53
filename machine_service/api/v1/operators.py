"""Operator roster API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from machine_service.core.database import get_db
from machine_service.models.operator import Operator
from machine_service.schemas.operator import OperatorCreate, OperatorResponse
from machine_service.services.operator_roster import DuplicateOperatorError, OperatorRoster

router = APIRouter(prefix="/operators", tags=["operators"])


@router.get("", response_model=list[OperatorResponse])
async def list_operators(
    db: AsyncSession = Depends(get_db),
) -> list[Operator]:
    """List all operators on the roster."""
    return await OperatorRoster(db).list_all()


@router.post("", response_model=OperatorResponse, status_code=status.HTTP_201_CREATED)
async def create_operator(
    payload: OperatorCreate,
    db: AsyncSession = Depends(get_db),
) -> Operator:
    """Add an operator; EPF numbers must be unique."""
    try:
        return await OperatorRoster(db).add(payload.name, payload.epf_number)
    except DuplicateOperatorError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.delete("/{epf_number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_operator(
    epf_number: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove an operator from the roster."""
    if not await OperatorRoster(db).delete(epf_number):
        raise HTTPException(status_code=404, detail="Operator not found")
