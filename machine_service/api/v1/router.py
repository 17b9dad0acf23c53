"""API v1 router aggregating all sub-routers."""

from fastapi import APIRouter

from machine_service.api.v1.machines import router as machines_router
from machine_service.api.v1.operators import router as operators_router
from machine_service.api.v1.reports import router as reports_router
from machine_service.api.v1.workstations import router as workstations_router
from machine_service.db.init_db import check_db_connection

api_v1_router = APIRouter()


@api_v1_router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint returning 200 OK."""
    database = "ok" if await check_db_connection() else "unavailable"
    return {"status": "ok", "database": database}


api_v1_router.include_router(workstations_router)
api_v1_router.include_router(machines_router)
api_v1_router.include_router(operators_router)
api_v1_router.include_router(reports_router)
