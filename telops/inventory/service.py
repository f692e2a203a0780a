"""Inventory operations exposed to the web layer.

Each operation debits through the ledger in one unit of work, commits, and
only then fans out low-stock alerts and writes the audit entry.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

from telops.core.audit_logger import AuditRecorder
from telops.core.result import Ok, Result, not_found, validation_error
from telops.inventory.ledger import DebitOutcome, InventoryLedger
from telops.models import Actor, MovementType
from telops.notifications.dispatcher import NotificationDispatcher

if TYPE_CHECKING:
    from telops.db.connection import Database
    from telops.db.models import InventoryItemModel

logger = structlog.get_logger(__name__)

DEFAULT_USAGE_REASON = "Used in field"


class InventoryService:
    def __init__(
        self,
        database: Database,
        ledger: InventoryLedger,
        dispatcher: NotificationDispatcher,
        audit: AuditRecorder,
        default_min_level: int = 5,
    ) -> None:
        self.database = database
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.audit = audit
        self.default_min_level = default_min_level

    async def use_item(
        self,
        actor: Actor,
        item_id: int,
        quantity: int,
        reason: str | None = None,
    ) -> Result[DebitOutcome]:
        """Record field usage of ``quantity`` units of an item."""
        reason = reason or DEFAULT_USAGE_REASON

        async with self.database.unit_of_work() as uow:
            result = await self.ledger.debit(
                uow,
                item_id,
                quantity,
                actor_id=actor.id,
                reason=reason,
                movement_type=MovementType.USAGE,
            )
            if not result.ok:
                return result
            await uow.commit()

        outcome = result.value
        if outcome.low_stock:
            await self.dispatcher.notify_low_stock(
                outcome.item_name,
                outcome.new_quantity,
                outcome.min_level,
                f"used by {actor.display_name}",
            )

        await self.audit.record(
            actor,
            "USE_INVENTORY_ITEM",
            "Inventory",
            item_id,
            {"quantity": quantity, "reason": reason, "new_quantity": outcome.new_quantity},
        )
        return result

    async def issue_item(
        self,
        actor: Actor,
        item_id: int | None,
        technician_id: int | None,
        quantity: int | None,
        notes: str | None = None,
    ) -> Result[DebitOutcome]:
        """Hand ``quantity`` units of an item to a technician."""
        if not item_id or not technician_id or not quantity:
            return validation_error("Missing required fields: item_id, technician_id, quantity")

        async with self.database.unit_of_work() as uow:
            technician = await uow.users.get_technician(technician_id)
            if technician is None:
                return not_found(f"Technician {technician_id} not found")

            result = await self.ledger.debit(
                uow,
                item_id,
                quantity,
                actor_id=actor.id,
                reason=notes,
                movement_type=MovementType.ISSUANCE,
                technician_id=technician_id,
            )
            if not result.ok:
                return result
            await uow.commit()

        outcome = result.value
        if outcome.low_stock:
            await self.dispatcher.notify_low_stock(
                outcome.item_name,
                outcome.new_quantity,
                outcome.min_level,
                "issued to technician",
            )

        await self.audit.record(
            actor,
            "ISSUE_INVENTORY_ITEM",
            "Inventory",
            item_id,
            {"technician_id": technician_id, "quantity": quantity, "notes": notes},
        )
        return result

    async def open_item(
        self,
        actor: Actor,
        name: str,
        category: str,
        quantity: int = 0,
        min_level: int | None = None,
        unit_cost: Decimal | float = 0,
        location: str | None = None,
    ) -> Result[InventoryItemModel]:
        async with self.database.unit_of_work() as uow:
            result = await self.ledger.open_item(
                uow,
                actor.id,
                name,
                category,
                quantity=quantity,
                min_level=self.default_min_level if min_level is None else min_level,
                unit_cost=unit_cost,
                location=location,
            )
            if not result.ok:
                return result
            await uow.commit()

        item = result.value
        logger.info("inventory_item_opened", item_id=item.id, quantity=item.quantity)
        await self.audit.record(
            actor, "CREATE_INVENTORY_ITEM", "Inventory", item.id, {"name": name, "quantity": quantity}
        )
        return Ok(item)
