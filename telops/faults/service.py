"""Fault ticket lifecycle.

The manager is the only writer of fault rows. Each operation performs its
write in one unit of work and commits before touching anything else; the
component status update, notifications and audit entry run afterwards as
independent best-effort steps.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.orm.exc import StaleDataError

from telops.components.synchronizer import ComponentStatusSynchronizer
from telops.core.audit_logger import AuditRecorder
from telops.core.clock import Clock, minutes_between, to_naive_utc, utcnow
from telops.core.result import (
    Err,
    Ok,
    Result,
    conflict,
    invalid_transition,
    not_found,
    validation_error,
)
from telops.db.models import FaultCommentModel, FaultModel, UserModel
from telops.models import (
    RESOLVED_FAULT_STATUSES,
    Actor,
    FaultPriority,
    FaultStatus,
    NotificationType,
    can_transition,
    fault_reference,
)
from telops.notifications.dispatcher import NotificationDispatcher

if TYPE_CHECKING:
    from telops.db.connection import Database
    from telops.db.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FaultView:
    """Detached snapshot of a fault row as of the last commit."""

    id: int
    title: str
    category: str
    priority: str
    status: str
    component_id: int | None
    reported_by: int
    assigned_to: int | None
    description: str | None
    reported_at: datetime
    assigned_at: datetime | None
    started_at: datetime | None
    scheduled_for: datetime | None
    resolved_at: datetime | None
    response_time_minutes: int | None
    resolution_notes: str | None
    version: int

    @classmethod
    def from_model(cls, fault: FaultModel) -> FaultView:
        return cls(
            id=fault.id,
            title=fault.title,
            category=fault.category,
            priority=fault.priority,
            status=fault.status,
            component_id=fault.component_id,
            reported_by=fault.reported_by,
            assigned_to=fault.assigned_to,
            description=fault.description,
            reported_at=fault.reported_at,
            assigned_at=fault.assigned_at,
            started_at=fault.started_at,
            scheduled_for=fault.scheduled_for,
            resolved_at=fault.resolved_at,
            response_time_minutes=fault.response_time_minutes,
            resolution_notes=fault.resolution_notes,
            version=fault.version,
        )

    @property
    def reference(self) -> str:
        return fault_reference(self.id)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        data["reference"] = self.reference
        return data


@dataclass(frozen=True, slots=True)
class FaultCommentView:
    id: int
    fault_id: int
    user_id: int
    user_name: str
    user_role: str
    comment: str
    created_at: datetime

    @classmethod
    def from_model(cls, comment: FaultCommentModel, author: UserModel) -> FaultCommentView:
        return cls(
            id=comment.id,
            fault_id=comment.fault_id,
            user_id=comment.user_id,
            user_name=author.full_name,
            user_role=author.role,
            comment=comment.comment,
            created_at=comment.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


class FaultLifecycleManager:
    """Drives fault tickets through Open, Pending, In Progress, Resolved and Closed."""

    def __init__(
        self,
        database: Database,
        synchronizer: ComponentStatusSynchronizer,
        dispatcher: NotificationDispatcher,
        audit: AuditRecorder,
        clock: Clock = utcnow,
    ) -> None:
        self.database = database
        self.synchronizer = synchronizer
        self.dispatcher = dispatcher
        self.audit = audit
        self.clock = clock

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(
        self,
        actor: Actor,
        title: str | None,
        category: str | None,
        component_id: int | None = None,
        priority: str | None = FaultPriority.MEDIUM.value,
        description: str | None = None,
    ) -> Result[FaultView]:
        if not title or not title.strip() or not category or not category.strip():
            return validation_error("Title and category are required")
        try:
            fault_priority = FaultPriority(priority or FaultPriority.MEDIUM.value)
        except ValueError:
            return validation_error(f"Invalid priority: {priority}")

        async with self.database.unit_of_work() as uow:
            if component_id is not None:
                component = await uow.components.get(component_id)
                if component is None:
                    return not_found(f"Component {component_id} not found")

            fault = await uow.faults.add(
                FaultModel(
                    component_id=component_id,
                    reported_by=actor.id,
                    title=title.strip(),
                    description=description,
                    category=category.strip(),
                    priority=fault_priority.value,
                    status=FaultStatus.OPEN.value,
                    reported_at=self.clock(),
                )
            )
            await uow.commit()
            view = FaultView.from_model(fault)

        logger.info(
            "fault_created",
            fault_id=view.id,
            priority=view.priority,
            component_id=component_id,
        )

        if fault_priority is FaultPriority.CRITICAL and component_id is not None:
            await self._sync_component(
                self.synchronizer.mark_faulty(component_id), view.id, component_id
            )

        await self.audit.record(
            actor,
            "CREATE_FAULT",
            "Fault",
            view.id,
            {"title": view.title, "priority": view.priority, "component_id": component_id},
        )
        return Ok(view)

    async def assign(
        self,
        actor: Actor,
        fault_id: int,
        technician_id: int | None,
        expected_version: int | None = None,
    ) -> Result[FaultView]:
        """Assign a technician; an Open fault moves to In Progress."""
        if not technician_id:
            return validation_error("Technician ID is required")

        async with self.database.unit_of_work() as uow:
            loaded = await self._load(uow, fault_id, expected_version)
            if not loaded.ok:
                return loaded
            fault = loaded.value

            technician = await uow.users.get_technician(technician_id)
            if technician is None:
                return not_found(f"Technician {technician_id} not found or inactive")

            now = self.clock()
            fault.assigned_to = technician_id
            if fault.assigned_at is None:
                fault.assigned_at = now
            if fault.status == FaultStatus.OPEN.value:
                fault.status = FaultStatus.IN_PROGRESS.value
                if fault.started_at is None:
                    fault.started_at = now

            saved = await self._save(uow, fault_id, fault)
            if not saved.ok:
                return saved
            view = saved.value

        logger.info("fault_assigned", fault_id=fault_id, technician_id=technician_id)

        await self.dispatcher.notify(
            technician_id,
            NotificationType.FAULT_ASSIGNED,
            f"You have been assigned fault {view.reference}",
            "/faults",
        )
        await self.audit.record(
            actor, "ASSIGN_FAULT", "Fault", fault_id, {"technician_id": technician_id}
        )
        return Ok(view)

    async def unassign(
        self,
        actor: Actor,
        fault_id: int,
        expected_version: int | None = None,
    ) -> Result[FaultView]:
        async with self.database.unit_of_work() as uow:
            loaded = await self._load(uow, fault_id, expected_version)
            if not loaded.ok:
                return loaded
            fault = loaded.value

            previous = fault.assigned_to
            fault.assigned_to = None
            saved = await self._save(uow, fault_id, fault)
            if not saved.ok:
                return saved
            view = saved.value

        logger.info("fault_unassigned", fault_id=fault_id, previous_technician_id=previous)
        await self.audit.record(
            actor, "UNASSIGN_FAULT", "Fault", fault_id, {"previous_technician_id": previous}
        )
        return Ok(view)

    async def transition_status(
        self,
        actor: Actor,
        fault_id: int,
        new_status: str | None,
        resolution_notes: str | None = None,
        expected_version: int | None = None,
    ) -> Result[FaultView]:
        """Move a fault along one edge of the state machine.

        Entering Resolved stamps ``resolved_at`` and ``response_time_minutes``
        once per episode; regressing Resolved -> Open clears both so the next
        resolution recomputes them. A rejected edge leaves the row untouched.
        """
        try:
            target = FaultStatus(new_status)
        except ValueError:
            return validation_error(f"Invalid status: {new_status}")

        async with self.database.unit_of_work() as uow:
            loaded = await self._load(uow, fault_id, expected_version)
            if not loaded.ok:
                return loaded
            fault = loaded.value

            current = FaultStatus(fault.status)
            if not can_transition(current, target):
                return invalid_transition(
                    f"Cannot move fault {fault_reference(fault_id)} "
                    f"from {current.value} to {target.value}"
                )

            now = self.clock()
            fault.status = target.value

            if target is FaultStatus.IN_PROGRESS and fault.started_at is None:
                fault.started_at = now

            if target is FaultStatus.RESOLVED and fault.resolved_at is None:
                fault.resolved_at = now
                fault.response_time_minutes = max(
                    0, minutes_between(fault.reported_at, now)
                )

            if current is FaultStatus.RESOLVED and target is FaultStatus.OPEN:
                # New episode
                fault.resolved_at = None
                fault.response_time_minutes = None

            if resolution_notes is not None:
                fault.resolution_notes = resolution_notes

            saved = await self._save(uow, fault_id, fault)
            if not saved.ok:
                return saved
            view = saved.value

        logger.info(
            "fault_status_changed",
            fault_id=fault_id,
            from_status=current.value,
            to_status=target.value,
            response_time_minutes=view.response_time_minutes,
        )

        if target in RESOLVED_FAULT_STATUSES and view.component_id is not None:
            await self._sync_component(
                self.synchronizer.mark_active(view.component_id, excluding_fault_id=fault_id),
                fault_id,
                view.component_id,
            )

        if view.reported_by != actor.id:
            await self.dispatcher.notify(
                view.reported_by,
                NotificationType.STATUS_CHANGE,
                f"Fault {view.reference} is now {target.value}",
                "/faults",
            )

        await self.audit.record(
            actor,
            "UPDATE_FAULT_STATUS",
            "Fault",
            fault_id,
            {
                "from": current.value,
                "to": target.value,
                "response_time_minutes": view.response_time_minutes,
            },
        )
        return Ok(view)

    async def schedule(
        self,
        actor: Actor,
        fault_id: int,
        scheduled_for: datetime | None,
    ) -> Result[FaultView]:
        """Set the planned work time. Status is unchanged and nobody is notified."""
        if scheduled_for is None:
            return validation_error("Scheduled date is required")
        scheduled_for = to_naive_utc(scheduled_for)

        async with self.database.unit_of_work() as uow:
            fault = await uow.faults.get(fault_id)
            if fault is None:
                return not_found(f"Fault {fault_id} not found")

            if fault.scheduled_for == scheduled_for:
                view = FaultView.from_model(fault)
            else:
                fault.scheduled_for = scheduled_for
                saved = await self._save(uow, fault_id, fault)
                if not saved.ok:
                    return saved
                view = saved.value

        await self.audit.record(
            actor,
            "SCHEDULE_FAULT",
            "Fault",
            fault_id,
            {"scheduled_for": scheduled_for.isoformat()},
        )
        return Ok(view)

    async def get(self, fault_id: int) -> Result[FaultView]:
        async with self.database.unit_of_work() as uow:
            fault = await uow.faults.get(fault_id)
            if fault is None:
                return not_found(f"Fault {fault_id} not found")
            return Ok(FaultView.from_model(fault))

    async def add_comment(
        self, actor: Actor, fault_id: int, comment: str | None
    ) -> Result[FaultCommentView]:
        """Append a comment. Comments never change the fault or its version."""
        if not comment or not comment.strip():
            return validation_error("Comment text is required")

        async with self.database.unit_of_work() as uow:
            if await uow.faults.get(fault_id) is None:
                return not_found(f"Fault {fault_id} not found")
            author = await uow.users.get(actor.id)
            if author is None:
                return not_found(f"User {actor.id} not found")

            entry = await uow.comments.add(
                FaultCommentModel(
                    fault_id=fault_id,
                    user_id=actor.id,
                    comment=comment.strip(),
                    created_at=self.clock(),
                )
            )
            await uow.commit()
            view = FaultCommentView.from_model(entry, author)

        logger.info("fault_comment_added", fault_id=fault_id, comment_id=view.id)
        await self.audit.record(
            actor, "ADD_FAULT_COMMENT", "Fault", fault_id, {"comment_id": view.id}
        )
        return Ok(view)

    async def list_comments(self, fault_id: int) -> Result[list[FaultCommentView]]:
        async with self.database.unit_of_work() as uow:
            if await uow.faults.get(fault_id) is None:
                return not_found(f"Fault {fault_id} not found")
            rows = await uow.comments.list_for_fault(fault_id)
            return Ok([FaultCommentView.from_model(entry, author) for entry, author in rows])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load(
        self, uow: UnitOfWork, fault_id: int, expected_version: int | None
    ) -> Result[FaultModel]:
        fault = await uow.faults.get(fault_id)
        if fault is None:
            return not_found(f"Fault {fault_id} not found")
        if expected_version is not None and fault.version != expected_version:
            return conflict(
                f"Fault {fault_reference(fault_id)} has changed "
                f"(version {fault.version}, expected {expected_version})"
            )
        return Ok(fault)

    async def _save(
        self, uow: UnitOfWork, fault_id: int, fault: FaultModel
    ) -> Result[FaultView]:
        try:
            await uow.faults.save(fault)
            await uow.commit()
        except StaleDataError:
            # The failed flush expires ``fault``; only the plain id is safe here.
            await uow.rollback()
            logger.warning("fault_version_conflict", fault_id=fault_id)
            return conflict(f"Fault {fault_reference(fault_id)} was modified concurrently")
        return Ok(FaultView.from_model(fault))

    async def _sync_component(
        self, call: Awaitable[Result[bool]], fault_id: int, component_id: int
    ) -> None:
        """Run a synchronizer call; the fault change is already committed."""
        try:
            outcome = await call
        except Exception:
            logger.exception(
                "component_sync_failed", fault_id=fault_id, component_id=component_id
            )
            return
        if isinstance(outcome, Err):
            logger.warning(
                "component_sync_skipped",
                fault_id=fault_id,
                component_id=component_id,
                reason=outcome.detail,
            )
