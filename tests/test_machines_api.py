"""Tests for machine check-in/check-out API endpoints."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from conftest import T0
from machine_service.api.v1.machines import (
    check_in_machine,
    check_out_machine,
    delete_machine,
    get_machine,
    list_completed_machines,
)
from machine_service.schemas.journey import CheckInRequest, CheckOutRequest


def _check_in(barcode: str, station: int, operator) -> CheckInRequest:
    return CheckInRequest(barcode_id=barcode, workstation=station, operator=operator)


class TestCheckInEndpoint:
    @pytest.mark.asyncio
    async def test_station_one_check_in(self, workflow, alice):
        result = await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)

        assert result.is_new is True
        assert result.wait_time is None
        assert "checked in to Workstation 1" in result.message

    @pytest.mark.asyncio
    async def test_new_machine_that_waits_gets_plain_message(self, workflow, alice, bob):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)
        result = await check_in_machine(payload=_check_in("BC002", 1, bob), service=workflow)

        assert result.wait_time == 900000
        assert result.message == "Machine BC002 checked in to Workstation 1"

    @pytest.mark.asyncio
    async def test_queue_message_reports_wait(self, workflow, alice, bob):
        for barcode in ("BC001", "BC002"):
            await check_in_machine(payload=_check_in(barcode, 1, alice), service=workflow)
            await check_out_machine(
                payload=CheckOutRequest(barcode_id=barcode, workstation=1), service=workflow
            )
        await check_in_machine(payload=_check_in("BC001", 2, alice), service=workflow)

        result = await check_in_machine(payload=_check_in("BC002", 2, bob), service=workflow)

        assert result.is_new is False
        assert result.wait_time == 900000
        assert result.message == "Machine BC002 is in queue. Estimated wait: 15 minutes"

    @pytest.mark.asyncio
    async def test_unregistered_machine_blocked_after_station_one(self, workflow, alice):
        with pytest.raises(HTTPException) as exc_info:
            await check_in_machine(payload=_check_in("BC001", 2, alice), service=workflow)
        assert exc_info.value.status_code == 404
        assert await workflow.get_machine_journey("BC001") is None

    @pytest.mark.asyncio
    async def test_predecessor_gate_blocks_skipped_station(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)
        await check_out_machine(
            payload=CheckOutRequest(barcode_id="BC001", workstation=1, tasks_completed=["ws1_task1"]),
            service=workflow,
        )

        with pytest.raises(HTTPException) as exc_info:
            await check_in_machine(payload=_check_in("BC001", 3, alice), service=workflow)
        assert exc_info.value.status_code == 409
        assert "has not completed Workstation 2" in exc_info.value.detail

        journey = await workflow.get_machine_journey("BC001")
        assert journey.current_workstation is None

    @pytest.mark.asyncio
    async def test_predecessor_gate_allows_next_station(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)
        await check_out_machine(
            payload=CheckOutRequest(barcode_id="BC001", workstation=1), service=workflow
        )

        result = await check_in_machine(payload=_check_in("BC001", 2, alice), service=workflow)
        assert result.is_new is False

    @pytest.mark.asyncio
    async def test_double_check_in_is_conflict(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)

        with pytest.raises(HTTPException) as exc_info:
            await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)
        assert exc_info.value.status_code == 409


class TestCheckOutEndpoint:
    @pytest.mark.asyncio
    async def test_check_out(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)

        result = await check_out_machine(
            payload=CheckOutRequest(barcode_id="BC001", workstation=1, tasks_completed=["ws1_task1"], total_tasks=11),
            service=workflow,
        )
        assert result.success is True
        assert "ready for Workstation 2" in result.message

    @pytest.mark.asyncio
    async def test_check_out_not_checked_in(self, workflow):
        with pytest.raises(HTTPException) as exc_info:
            await check_out_machine(
                payload=CheckOutRequest(barcode_id="BC001", workstation=1), service=workflow
            )
        assert exc_info.value.status_code == 404


class TestMachineLookupEndpoints:
    @pytest.mark.asyncio
    async def test_get_found(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)
        journey = await get_machine(barcode_id="BC001", service=workflow)
        assert journey.current_workstation == 1

    @pytest.mark.asyncio
    async def test_get_not_found(self, workflow):
        with pytest.raises(HTTPException) as exc_info:
            await get_machine(barcode_id="missing", service=workflow)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_then_not_found(self, workflow, alice):
        await check_in_machine(payload=_check_in("BC001", 1, alice), service=workflow)

        await delete_machine(barcode_id="BC001", service=workflow)

        with pytest.raises(HTTPException) as exc_info:
            await get_machine(barcode_id="BC001", service=workflow)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_not_found(self, workflow):
        with pytest.raises(HTTPException) as exc_info:
            await delete_machine(barcode_id="missing", service=workflow)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_completed(self, workflow, memory_store, journey_factory):
        await memory_store.save_all({"BC001": journey_factory.completed("BC001")})

        result = await list_completed_machines(start=T0, end=T0 + timedelta(days=1), service=workflow)
        assert [c.barcode_id for c in result] == ["BC001"]

    @pytest.mark.asyncio
    async def test_completed_rejects_inverted_range(self, workflow):
        with pytest.raises(HTTPException) as exc_info:
            await list_completed_machines(start=T0, end=T0 - timedelta(days=1), service=workflow)
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_completed_accepts_bound_without_offset(self, workflow, memory_store, journey_factory):
        await memory_store.save_all({"BC001": journey_factory.completed("BC001")})

        end = (T0 + timedelta(days=1)).replace(tzinfo=None)
        result = await list_completed_machines(start=T0, end=end, service=workflow)
        assert [c.barcode_id for c in result] == ["BC001"]

    @pytest.mark.asyncio
    async def test_inverted_range_with_mixed_offsets(self, workflow):
        with pytest.raises(HTTPException) as exc_info:
            await list_completed_machines(
                start=T0, end=(T0 - timedelta(hours=1)).replace(tzinfo=None), service=workflow
            )
        assert exc_info.value.status_code == 422
