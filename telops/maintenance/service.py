"""Maintenance recording with atomic parts consumption.

A maintenance entry and the stock debits for the parts it used commit
together or not at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from telops.core.audit_logger import AuditRecorder
from telops.core.clock import Clock, to_naive_utc, utcnow
from telops.core.result import Ok, Result, not_found, validation_error
from telops.db.models import MaintenanceLogModel
from telops.inventory.ledger import DebitOutcome, InventoryLedger
from telops.models import Actor, MovementType
from telops.notifications.dispatcher import NotificationDispatcher

if TYPE_CHECKING:
    from telops.db.connection import Database

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PartUsage:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class MaintenanceRecord:
    log_id: int
    component_id: int
    technician_id: int
    activity_date: datetime
    debits: tuple[DebitOutcome, ...] = field(default_factory=tuple)


def _coerce_parts(parts: Iterable[PartUsage | Mapping[str, Any]]) -> list[PartUsage] | None:
    """Normalise part entries; None if any entry is malformed."""
    normalised: list[PartUsage] = []
    for part in parts:
        if isinstance(part, PartUsage):
            item_id, quantity = part.item_id, part.quantity
        elif isinstance(part, Mapping):
            item_id, quantity = part.get("item_id"), part.get("quantity")
        else:
            return None
        if not isinstance(item_id, int) or isinstance(item_id, bool):
            return None
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            return None
        normalised.append(PartUsage(item_id=item_id, quantity=quantity))
    return normalised


class MaintenanceRecorder:
    def __init__(
        self,
        database: Database,
        ledger: InventoryLedger,
        dispatcher: NotificationDispatcher,
        audit: AuditRecorder,
        clock: Clock = utcnow,
    ) -> None:
        self.database = database
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.audit = audit
        self.clock = clock

    async def record_maintenance(
        self,
        actor: Actor,
        component_id: int | None,
        action_taken: str | None,
        technician_id: int | None = None,
        result: str | None = "Success",
        duration_minutes: int | None = None,
        activity_date: datetime | None = None,
        maintenance_type: str | None = "scheduled",
        parts: Iterable[PartUsage | Mapping[str, Any]] = (),
    ) -> Result[MaintenanceRecord]:
        """Create a maintenance log and debit every part it consumed.

        The first failed debit rolls back the log and every earlier debit and
        is returned unchanged, so the caller sees exactly which part failed.

        Args:
            actor: Caller recording the work
            component_id: Component worked on
            action_taken: Free-text description of the work
            technician_id: Who did the work; defaults to the actor
            parts: ``PartUsage`` entries or ``{"item_id", "quantity"}`` mappings

        Returns:
            Ok(MaintenanceRecord) or the first validation/not-found/stock error.
        """
        if not component_id or not action_taken or not action_taken.strip():
            return validation_error("Component ID and action taken are required")
        if duration_minutes is not None and duration_minutes < 0:
            return validation_error("duration_minutes must be non-negative")

        part_list = _coerce_parts(parts)
        if part_list is None:
            return validation_error("Each part needs an item_id and a positive integer quantity")

        technician_id = technician_id or actor.id

        async with self.database.unit_of_work() as uow:
            component = await uow.components.get(component_id)
            if component is None:
                return not_found(f"Component {component_id} not found")
            technician = await uow.users.get(technician_id)
            if technician is None:
                return not_found(f"Technician {technician_id} not found")

            log = await uow.maintenance.add(
                MaintenanceLogModel(
                    component_id=component_id,
                    technician_id=technician_id,
                    action_taken=action_taken.strip(),
                    result=result or "Success",
                    duration_minutes=duration_minutes,
                    maintenance_type=maintenance_type or "scheduled",
                    activity_date=to_naive_utc(activity_date) if activity_date else self.clock(),
                )
            )

            debits: list[DebitOutcome] = []
            for part in part_list:
                debit = await self.ledger.debit(
                    uow,
                    part.item_id,
                    part.quantity,
                    actor_id=actor.id,
                    reason=f"Maintenance on {component.name}",
                    movement_type=MovementType.MAINTENANCE,
                    maintenance_log_id=log.id,
                )
                if not debit.ok:
                    await uow.rollback()
                    logger.warning(
                        "maintenance_rolled_back",
                        component_id=component_id,
                        item_id=part.item_id,
                        error=debit.kind.value,
                        detail=debit.detail,
                    )
                    return debit
                debits.append(debit.value)

            await uow.commit()
            record = MaintenanceRecord(
                log_id=log.id,
                component_id=component_id,
                technician_id=technician_id,
                activity_date=log.activity_date,
                debits=tuple(debits),
            )
            component_name = component.name

        logger.info(
            "maintenance_recorded",
            log_id=record.log_id,
            component_id=component_id,
            parts=len(debits),
        )

        for outcome in debits:
            if outcome.low_stock:
                await self.dispatcher.notify_low_stock(
                    outcome.item_name,
                    outcome.new_quantity,
                    outcome.min_level,
                    f"used in maintenance on {component_name}",
                )

        await self.audit.record(
            actor,
            "CREATE_MAINTENANCE_LOG",
            "MaintenanceLog",
            record.log_id,
            {
                "component_id": component_id,
                "technician_id": technician_id,
                "parts": [
                    {"item_id": outcome.item_id, "quantity": outcome.quantity_debited}
                    for outcome in debits
                ],
            },
        )
        return Ok(record)
