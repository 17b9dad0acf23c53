"""Shared FastAPI dependencies for the v1 routers."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from machine_service.core.config import settings
from machine_service.core.database import get_db
from machine_service.core.redis import get_redis_from_app
from machine_service.services.journey_store import (
    JourneyStore,
    MemoryJourneyStore,
    RedisJourneyStore,
    SqlJourneyStore,
)
from machine_service.services.wait_estimator import LinearWaitEstimator
from machine_service.services.workflow import OperationOutcome, WorkflowErrorKind, WorkflowService

ERROR_STATUS: dict[WorkflowErrorKind, int] = {
    WorkflowErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    WorkflowErrorKind.SEQUENCE: status.HTTP_409_CONFLICT,
    WorkflowErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    WorkflowErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    WorkflowErrorKind.STORE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def get_journey_store(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> JourneyStore:
    """Journey store for the configured backend."""
    backend = settings.JOURNEY_STORE_BACKEND.lower()
    if backend == "memory":
        store = getattr(request.app.state, "journey_store", None)
        if store is None:
            store = MemoryJourneyStore()
            request.app.state.journey_store = store
        return store
    if backend == "redis":
        return RedisJourneyStore(get_redis_from_app(request), prefix=settings.REDIS_KEY_PREFIX)
    return SqlJourneyStore(db)


async def get_workflow_service(
    store: JourneyStore = Depends(get_journey_store),
) -> WorkflowService:
    return WorkflowService(
        store,
        wait_estimator=LinearWaitEstimator(settings.WAIT_MINUTES_PER_MACHINE),
        enforce_sequence=settings.ENFORCE_STATION_SEQUENCE,
    )


def raise_for_outcome(outcome: OperationOutcome) -> None:
    """Turn a failed workflow outcome into an HTTP error."""
    if outcome.ok:
        return
    status_code = ERROR_STATUS.get(outcome.error, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=status_code, detail=outcome.message)
