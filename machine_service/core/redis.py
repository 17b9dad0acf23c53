"""Async Redis connection manager using app.state instead of global mutable state."""

import redis.asyncio as aioredis
from fastapi import Request

from machine_service.core.config import settings


async def init_redis(app_state: object) -> aioredis.Redis:
    """Initialize the async Redis connection and store it on app.state."""
    client = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    # Verify connectivity
    await client.ping()
    app_state.redis = client  # type: ignore[attr-defined]
    return client


async def close_redis(app_state: object) -> None:
    """Close the Redis connection stored on app.state."""
    client: aioredis.Redis | None = getattr(app_state, "redis", None)
    if client is not None:
        await client.aclose()
        app_state.redis = None  # type: ignore[attr-defined]


def get_redis_from_app(request: Request) -> aioredis.Redis:
    """FastAPI dependency that returns the Redis client from app.state."""
    client: aioredis.Redis | None = getattr(request.app.state, "redis", None)
    if client is None:
        raise RuntimeError("Redis client not initialized. Call init_redis() first.")
    return client
