"""Tests for store selection and outcome-to-HTTP mapping."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from machine_service.api.v1.deps import get_journey_store, get_workflow_service, raise_for_outcome
from machine_service.services.journey_store import MemoryJourneyStore, RedisJourneyStore, SqlJourneyStore
from machine_service.services.workflow import OperationOutcome, WorkflowErrorKind


def _request(**state) -> SimpleNamespace:
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


class TestRaiseForOutcome:
    def test_success_passes(self):
        raise_for_outcome(OperationOutcome(ok=True, message="fine"))

    @pytest.mark.parametrize(
        "kind, status_code",
        [
            (WorkflowErrorKind.CONFLICT, 409),
            (WorkflowErrorKind.SEQUENCE, 409),
            (WorkflowErrorKind.NOT_FOUND, 404),
            (WorkflowErrorKind.VALIDATION, 422),
            (WorkflowErrorKind.STORE_FAILURE, 503),
        ],
    )
    def test_failure_status(self, kind, status_code):
        with pytest.raises(HTTPException) as exc_info:
            raise_for_outcome(OperationOutcome(ok=False, message="nope", error=kind))
        assert exc_info.value.status_code == status_code
        assert exc_info.value.detail == "nope"


class TestGetJourneyStore:
    @pytest.mark.asyncio
    async def test_sql_backend(self, mock_db):
        with patch("machine_service.api.v1.deps.settings") as settings:
            settings.JOURNEY_STORE_BACKEND = "sql"
            store = await get_journey_store(request=_request(), db=mock_db)
        assert isinstance(store, SqlJourneyStore)
        assert store.db is mock_db

    @pytest.mark.asyncio
    async def test_memory_backend_is_shared(self, mock_db):
        request = _request()
        with patch("machine_service.api.v1.deps.settings") as settings:
            settings.JOURNEY_STORE_BACKEND = "memory"
            first = await get_journey_store(request=request, db=mock_db)
            second = await get_journey_store(request=request, db=mock_db)
        assert isinstance(first, MemoryJourneyStore)
        assert first is second

    @pytest.mark.asyncio
    async def test_redis_backend(self, mock_db):
        request = _request(redis=MagicMock())
        with patch("machine_service.api.v1.deps.settings") as settings:
            settings.JOURNEY_STORE_BACKEND = "redis"
            settings.REDIS_KEY_PREFIX = "svc"
            store = await get_journey_store(request=request, db=mock_db)
        assert isinstance(store, RedisJourneyStore)
        assert store.journeys_key == "svc:journeys"

    @pytest.mark.asyncio
    async def test_redis_backend_requires_client(self, mock_db):
        with patch("machine_service.api.v1.deps.settings") as settings:
            settings.JOURNEY_STORE_BACKEND = "redis"
            with pytest.raises(RuntimeError):
                await get_journey_store(request=_request(redis=None), db=mock_db)


class TestGetWorkflowService:
    @pytest.mark.asyncio
    async def test_uses_configured_wait_rate(self, memory_store):
        with patch("machine_service.api.v1.deps.settings") as settings:
            settings.WAIT_MINUTES_PER_MACHINE = 20
            settings.ENFORCE_STATION_SEQUENCE = True
            service = await get_workflow_service(store=memory_store)
        assert service.wait_estimator(1) == 20 * 60 * 1000
        assert service.enforce_sequence is True
