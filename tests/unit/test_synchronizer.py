"""Tests for component status synchronisation."""

from __future__ import annotations

from datetime import datetime

import pytest

from telops.core.result import ErrorKind
from telops.db.models import ComponentModel, FaultModel


async def _set_component_status(database, component_id: int, status: str) -> None:
    async with database.session() as session:
        component = await session.get(ComponentModel, component_id)
        component.status = status
        await session.commit()


async def _add_fault(database, component_id: int, status: str) -> int:
    async with database.session() as session:
        fault = FaultModel(
            component_id=component_id,
            reported_by=4,
            title="Packet loss",
            category="connectivity",
            status=status,
            reported_at=datetime(2024, 3, 1, 8, 0),
        )
        session.add(fault)
        await session.commit()
        return fault.id


@pytest.mark.asyncio
async def test_mark_faulty_reports_whether_it_wrote(services, seed):
    assert (await services.synchronizer.mark_faulty(seed.router_id)).value is True
    assert (await services.synchronizer.mark_faulty(seed.router_id)).value is False


@pytest.mark.asyncio
async def test_mark_faulty_overrides_maintenance(services, database, seed):
    await _set_component_status(database, seed.router_id, "Maintenance")

    assert (await services.synchronizer.mark_faulty(seed.router_id)).value is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["Active", "Maintenance", "Inactive"])
async def test_mark_active_only_leaves_faulty(services, database, seed, status):
    await _set_component_status(database, seed.router_id, status)

    result = await services.synchronizer.mark_active(seed.router_id)

    assert result.value is False
    async with database.session() as session:
        assert (await session.get(ComponentModel, seed.router_id)).status == status


@pytest.mark.asyncio
@pytest.mark.parametrize("blocking_status", ["Open", "In Progress"])
async def test_mark_active_deferred_by_unresolved_faults(
    services, database, seed, blocking_status
):
    await _set_component_status(database, seed.router_id, "Faulty")
    await _add_fault(database, seed.router_id, blocking_status)

    assert (await services.synchronizer.mark_active(seed.router_id)).value is False


@pytest.mark.asyncio
async def test_mark_active_ignores_excluded_and_resolved_faults(services, database, seed):
    await _set_component_status(database, seed.router_id, "Faulty")
    excluded = await _add_fault(database, seed.router_id, "In Progress")
    await _add_fault(database, seed.router_id, "Closed")
    await _add_fault(database, seed.switch_id, "Open")

    result = await services.synchronizer.mark_active(seed.router_id, excluding_fault_id=excluded)

    assert result.value is True
    async with database.session() as session:
        assert (await session.get(ComponentModel, seed.router_id)).status == "Active"


@pytest.mark.asyncio
async def test_missing_component_is_not_found(services, seed):
    assert (await services.synchronizer.mark_faulty(999)).kind is ErrorKind.NOT_FOUND
    assert (await services.synchronizer.mark_active(999)).kind is ErrorKind.NOT_FOUND
