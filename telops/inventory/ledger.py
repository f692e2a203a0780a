"""Inventory ledger: the only code path that changes stock quantities.

Every change is a conditional quantity update plus a ``StockMovementModel``
row in the same unit of work, so an item's quantity always equals the net of
its movements. The ledger never commits and never notifies; callers own the
transaction and decide what to do with a low-stock outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from telops.core.clock import Clock, utcnow
from telops.core.result import (
    Ok,
    Result,
    insufficient_stock,
    not_found,
    validation_error,
)
from telops.db.models import InventoryItemModel, StockMovementModel
from telops.db.unit_of_work import UnitOfWork
from telops.models import MovementType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DebitOutcome:
    item_id: int
    item_name: str
    quantity_debited: int
    new_quantity: int
    min_level: int
    movement_id: int

    @property
    def low_stock(self) -> bool:
        return self.new_quantity <= self.min_level


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class InventoryLedger:
    def __init__(self, clock: Clock = utcnow) -> None:
        self.clock = clock

    async def debit(
        self,
        uow: UnitOfWork,
        item_id: int,
        quantity: int,
        actor_id: int,
        reason: str | None = None,
        movement_type: MovementType = MovementType.USAGE,
        technician_id: int | None = None,
        maintenance_log_id: int | None = None,
    ) -> Result[DebitOutcome]:
        """Take ``quantity`` units out of stock.

        No partial debits: if fewer units are available the quantity is left
        untouched and an insufficient-stock error is returned.
        """
        if not _is_positive_int(quantity):
            return validation_error("Valid quantity required")

        item = await uow.inventory.get(item_id)
        if item is None:
            return not_found(f"Inventory item {item_id} not found")

        if item.quantity < quantity:
            return insufficient_stock(
                f"Insufficient stock for {item.name}: "
                f"requested {quantity}, available {item.quantity}"
            )

        new_quantity = await uow.inventory.debit_quantity(item_id, quantity)
        if new_quantity is None:
            # Lost a race with a concurrent debit between the read and the update.
            return insufficient_stock(f"Insufficient stock for {item.name}")

        movement = await uow.inventory.add_movement(
            StockMovementModel(
                item_id=item_id,
                actor_id=actor_id,
                movement_type=movement_type.value,
                quantity_delta=-quantity,
                reason=reason,
                technician_id=technician_id,
                maintenance_log_id=maintenance_log_id,
                created_at=self.clock(),
            )
        )

        logger.info(
            "stock_debited",
            item_id=item_id,
            quantity=quantity,
            new_quantity=new_quantity,
            movement_type=movement_type.value,
        )
        return Ok(
            DebitOutcome(
                item_id=item_id,
                item_name=item.name,
                quantity_debited=quantity,
                new_quantity=new_quantity,
                min_level=item.min_level,
                movement_id=movement.id,
            )
        )

    async def credit(
        self,
        uow: UnitOfWork,
        item_id: int,
        quantity: int,
        actor_id: int,
        reason: str | None = None,
    ) -> Result[int]:
        """Restock ``quantity`` units. Returns the new balance."""
        if not _is_positive_int(quantity):
            return validation_error("Valid quantity required")

        item = await uow.inventory.get(item_id)
        if item is None:
            return not_found(f"Inventory item {item_id} not found")

        new_quantity = await uow.inventory.credit_quantity(item_id, quantity)
        await uow.inventory.add_movement(
            StockMovementModel(
                item_id=item_id,
                actor_id=actor_id,
                movement_type=MovementType.RESTOCK.value,
                quantity_delta=quantity,
                reason=reason,
                created_at=self.clock(),
            )
        )
        logger.info("stock_credited", item_id=item_id, quantity=quantity, new_quantity=new_quantity)
        return Ok(new_quantity)

    async def open_item(
        self,
        uow: UnitOfWork,
        actor_id: int,
        name: str,
        category: str,
        quantity: int = 0,
        min_level: int = 5,
        unit_cost: Decimal | float = 0,
        location: str | None = None,
    ) -> Result[InventoryItemModel]:
        """Create an item at zero stock and credit its opening balance."""
        if not name or not category:
            return validation_error("Name and category are required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            return validation_error("Opening quantity must be a non-negative integer")
        if min_level < 0:
            return validation_error("min_level must be non-negative")

        item = await uow.inventory.add_item(
            InventoryItemModel(
                name=name,
                category=category,
                quantity=0,
                min_level=min_level,
                unit_cost=Decimal(str(unit_cost)),
                location=location,
            )
        )
        if quantity:
            credited = await self.credit(uow, item.id, quantity, actor_id, "Opening balance")
            if not credited.ok:
                return credited
            await uow.session.refresh(item)
        return Ok(item)
