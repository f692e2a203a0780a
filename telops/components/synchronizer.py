"""Keeps component status consistent with the faults raised against it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from telops.core.result import Ok, Result, not_found
from telops.models import ComponentStatus

if TYPE_CHECKING:
    from telops.db.connection import Database

logger = structlog.get_logger(__name__)


class ComponentStatusSynchronizer:
    """Sole writer of ``Component.status`` in response to fault events.

    Both operations return ``Ok(True)`` when they changed the row and
    ``Ok(False)`` when the component was already in a compatible state.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def mark_faulty(self, component_id: int) -> Result[bool]:
        async with self.database.unit_of_work() as uow:
            component = await uow.components.get(component_id)
            if component is None:
                return not_found(f"Component {component_id} not found")
            if component.status == ComponentStatus.FAULTY.value:
                return Ok(False)

            previous = component.status
            await uow.components.set_status(component, ComponentStatus.FAULTY.value)
            await uow.commit()

        logger.info(
            "component_marked_faulty", component_id=component_id, previous_status=previous
        )
        return Ok(True)

    async def mark_active(
        self, component_id: int, excluding_fault_id: int | None = None
    ) -> Result[bool]:
        """Return a Faulty component to Active once nothing holds it down.

        Maintenance and Inactive are operator decisions and are left alone.
        The component stays Faulty while any other Open or In Progress fault
        references it.
        """
        async with self.database.unit_of_work() as uow:
            component = await uow.components.get(component_id)
            if component is None:
                return not_found(f"Component {component_id} not found")
            if component.status != ComponentStatus.FAULTY.value:
                return Ok(False)

            remaining = await uow.faults.count_unresolved_for_component(
                component_id, excluding_fault_id=excluding_fault_id
            )
            if remaining:
                logger.info(
                    "component_reactivation_deferred",
                    component_id=component_id,
                    unresolved_faults=remaining,
                )
                return Ok(False)

            await uow.components.set_status(component, ComponentStatus.ACTIVE.value)
            await uow.commit()

        logger.info("component_marked_active", component_id=component_id)
        return Ok(True)
