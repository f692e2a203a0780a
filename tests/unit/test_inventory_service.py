"""Tests for inventory usage and issuance operations."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from telops.core.result import ErrorKind
from telops.db.models import AuditLogModel, NotificationModel, StockMovementModel


async def _low_stock_notifications(database) -> list[NotificationModel]:
    async with database.session() as session:
        return list(
            (
                await session.execute(
                    select(NotificationModel)
                    .where(NotificationModel.type == "low_stock")
                    .order_by(NotificationModel.user_id)
                )
            ).scalars()
        )


@pytest.mark.asyncio
async def test_use_item_fans_out_low_stock_to_active_managers(services, database, seed, items):
    result = await services.inventory.use_item(seed.reporter, items.patch_cable, 2)

    assert result.value.new_quantity == 8
    assert result.value.low_stock is True

    notes = await _low_stock_notifications(database)
    # Active admin and manager only; the inactive manager is skipped
    assert [note.user_id for note in notes] == [1, 2]
    assert notes[0].message == "Low Stock Alert: Fibre Patch Cable used by jdoe. Remaining: 8 (Min: 9)"
    assert notes[0].link == "/inventory"


@pytest.mark.asyncio
async def test_low_stock_alerts_are_not_deduplicated(services, database, seed, items):
    await services.inventory.use_item(seed.reporter, items.patch_cable, 2)
    await services.inventory.use_item(seed.reporter, items.patch_cable, 1)

    assert len(await _low_stock_notifications(database)) == 4


@pytest.mark.asyncio
async def test_use_item_records_usage_movement_and_audit(services, database, seed, items):
    await services.inventory.use_item(seed.technician, items.cat6, 4)

    async with database.session() as session:
        movement = (
            await session.execute(
                select(StockMovementModel)
                .where(StockMovementModel.item_id == items.cat6)
                .order_by(StockMovementModel.id.desc())
            )
        ).scalars().first()
        audit = (
            await session.execute(
                select(AuditLogModel).where(AuditLogModel.action == "USE_INVENTORY_ITEM")
            )
        ).scalar_one()

    assert movement.movement_type == "usage"
    assert movement.quantity_delta == -4
    assert movement.reason == "Used in field"
    assert movement.actor_id == seed.technician.id
    assert audit.entity_id == items.cat6
    assert audit.details["quantity"] == 4
    assert await _low_stock_notifications(database) == []


@pytest.mark.asyncio
async def test_use_item_insufficient_stock(services, database, seed, items):
    result = await services.inventory.use_item(seed.technician, items.sfp, 4)

    assert result.kind is ErrorKind.INSUFFICIENT_STOCK
    async with database.unit_of_work() as uow:
        assert (await uow.inventory.get(items.sfp)).quantity == 3


@pytest.mark.asyncio
async def test_issue_item_to_technician(services, database, seed, items):
    result = await services.inventory.issue_item(
        seed.manager, items.sfp, seed.technician_id, 2, notes="Van stock"
    )

    assert result.value.new_quantity == 1
    assert result.value.low_stock is True

    async with database.session() as session:
        movement = (
            await session.execute(
                select(StockMovementModel).where(StockMovementModel.movement_type == "issuance")
            )
        ).scalar_one()
    assert movement.technician_id == seed.technician_id
    assert movement.reason == "Van stock"

    notes = await _low_stock_notifications(database)
    assert notes[0].message == "Low Stock Alert: SFP Module issued to technician. Remaining: 1 (Min: 1)"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "item_key,technician_id,quantity",
    [(None, 3, 1), ("cat6", None, 1), ("cat6", 3, None)],
)
async def test_issue_item_missing_fields(services, seed, items, item_key, technician_id, quantity):
    item_id = getattr(items, item_key) if item_key else None

    result = await services.inventory.issue_item(seed.manager, item_id, technician_id, quantity)

    assert result.kind is ErrorKind.VALIDATION


@pytest.mark.asyncio
@pytest.mark.parametrize("technician_id", [999, 6])
async def test_issue_item_unknown_technician(services, database, seed, items, technician_id):
    result = await services.inventory.issue_item(seed.manager, items.cat6, technician_id, 1)

    assert result.kind is ErrorKind.NOT_FOUND
    async with database.unit_of_work() as uow:
        assert (await uow.inventory.get(items.cat6)).quantity == 50


@pytest.mark.asyncio
async def test_open_item_uses_configured_default_min_level(services, seed):
    result = await services.inventory.open_item(seed.admin, "Splice Tray", "hardware", quantity=4)

    assert result.value.min_level == 5
    assert result.value.quantity == 4
