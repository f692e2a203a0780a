"""Append-only audit trail written outside the caller's transaction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from telops.db.models import AuditLogModel
from telops.models import Actor

if TYPE_CHECKING:
    from telops.db.connection import Database

logger = structlog.get_logger(__name__)


class AuditRecorder:
    """Append-only audit trail writer.

    Every write runs in its own unit of work after the primary operation has
    committed. A failed insert is logged and dropped; it never reaches the
    caller.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def record(
        self,
        actor: Actor | int | None,
        action: str,
        entity_type: str | None = None,
        entity_id: int | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> bool:
        """Log an action to the audit trail.

        Args:
            actor: Acting user (or bare user id)
            action: Action tag (e.g. "CREATE_FAULT", "USE_INVENTORY_ITEM")
            entity_type: Type of entity affected
            entity_id: ID of entity affected
            details: Additional JSON-serialisable details
            ip_address: Caller address; defaults to the actor's

        Returns:
            True if the entry was stored.
        """
        if isinstance(actor, Actor):
            user_id: int | None = actor.id
            ip_address = ip_address or actor.ip_address
        else:
            user_id = actor

        entry = AuditLogModel(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=ip_address,
        )

        try:
            async with self.database.unit_of_work() as uow:
                await uow.audit.add(entry)
                await uow.commit()
        except Exception:
            logger.exception(
                "audit_log_failed",
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
            )
            return False
        return True
