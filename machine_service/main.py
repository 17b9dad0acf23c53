"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from machine_service.api.v1.router import api_v1_router
from machine_service.core.config import settings
from machine_service.core.database import async_session_factory, close_db
from machine_service.core.redis import close_redis, init_redis
from machine_service.db.init_db import init_db
from machine_service.db.seed import seed_if_empty
from machine_service.services.journey_store import MemoryJourneyStore, StoreError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    logger.info("Starting %s ...", settings.PROJECT_NAME)

    # Startup
    await init_db()
    logger.info("Database initialized")

    if settings.SEED_DEFAULT_OPERATORS:
        async with async_session_factory() as session:
            result = await seed_if_empty(session)
            if result:
                await session.commit()
                logger.info("Default operators seeded: %s", result)
            else:
                logger.info("Operator roster already has data, skipping seed")

    backend = settings.JOURNEY_STORE_BACKEND.lower()
    if backend == "redis":
        await init_redis(app.state)
        logger.info("Redis connected")
    elif backend == "memory":
        app.state.journey_store = MemoryJourneyStore()
        logger.warning("Using in-memory journey store; data is lost on restart")
    logger.info("Journey store backend: %s", backend)

    yield

    # Shutdown
    if backend == "redis":
        await close_redis(app.state)
        logger.info("Redis disconnected")

    await close_db()
    logger.info("Database disconnected")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Persistence failures surface as 503 so the caller can retry."""
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable. Please try again"},
    )


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")
