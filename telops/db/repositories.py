"""Entity repositories.

Each repository wraps one ``AsyncSession`` and exposes the handful of reads
and writes the lifecycle services need. Services never build queries
themselves; transaction control stays with the unit of work.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from telops.db.models import (
    AuditLogModel,
    ComponentModel,
    FaultCommentModel,
    FaultModel,
    InventoryItemModel,
    MaintenanceLogModel,
    MetricsSnapshotModel,
    NotificationModel,
    StockMovementModel,
    UserModel,
)
from telops.models import TECHNICIAN_ROLES, UNRESOLVED_FAULT_STATUSES, UserStatus


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: int) -> UserModel | None:
        return await self.session.get(UserModel, user_id)

    async def get_technician(self, user_id: int) -> UserModel | None:
        """Active user holding a technician-eligible role, or None."""
        stmt = select(UserModel).where(
            UserModel.id == user_id,
            UserModel.role.in_([role.value for role in TECHNICIAN_ROLES]),
            UserModel.status == UserStatus.ACTIVE.value,
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_active_by_roles(self, roles: Iterable[str]) -> Sequence[UserModel]:
        stmt = (
            select(UserModel)
            .where(
                UserModel.role.in_(list(roles)),
                UserModel.status == UserStatus.ACTIVE.value,
            )
            .order_by(UserModel.id)
        )
        return (await self.session.execute(stmt)).scalars().all()


class ComponentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, component_id: int) -> ComponentModel | None:
        return await self.session.get(ComponentModel, component_id)

    async def set_status(self, component: ComponentModel, status: str) -> None:
        component.status = status
        await self.session.flush()


class FaultRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, fault_id: int) -> FaultModel | None:
        return await self.session.get(FaultModel, fault_id)

    async def add(self, fault: FaultModel) -> FaultModel:
        self.session.add(fault)
        await self.session.flush()
        return fault

    async def save(self, fault: FaultModel) -> FaultModel:
        """Flush pending changes; raises ``StaleDataError`` on a version clash."""
        await self.session.flush()
        return fault

    async def count_unresolved_for_component(
        self, component_id: int, excluding_fault_id: int | None = None
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(FaultModel)
            .where(
                FaultModel.component_id == component_id,
                FaultModel.status.in_([status.value for status in UNRESOLVED_FAULT_STATUSES]),
            )
        )
        if excluding_fault_id is not None:
            stmt = stmt.where(FaultModel.id != excluding_fault_id)
        return (await self.session.execute(stmt)).scalar_one()


class MaintenanceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, log: MaintenanceLogModel) -> MaintenanceLogModel:
        self.session.add(log)
        await self.session.flush()
        return log

    async def get(self, log_id: int) -> MaintenanceLogModel | None:
        return await self.session.get(MaintenanceLogModel, log_id)


class InventoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, item_id: int) -> InventoryItemModel | None:
        return await self.session.get(InventoryItemModel, item_id)

    async def add_item(self, item: InventoryItemModel) -> InventoryItemModel:
        self.session.add(item)
        await self.session.flush()
        return item

    async def debit_quantity(self, item_id: int, quantity: int) -> int | None:
        """Conditionally subtract ``quantity``.

        A single ``UPDATE ... WHERE quantity >= :quantity`` so concurrent
        debits cannot overdraw the item. Returns the new balance, or None when
        the stock was insufficient and nothing changed.
        """
        stmt = (
            update(InventoryItemModel)
            .where(
                InventoryItemModel.id == item_id,
                InventoryItemModel.quantity >= quantity,
            )
            .values(quantity=InventoryItemModel.quantity - quantity)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self._current_quantity(item_id)

    async def credit_quantity(self, item_id: int, quantity: int) -> int:
        stmt = (
            update(InventoryItemModel)
            .where(InventoryItemModel.id == item_id)
            .values(quantity=InventoryItemModel.quantity + quantity)
        )
        await self.session.execute(stmt)
        return await self._current_quantity(item_id)

    async def add_movement(self, movement: StockMovementModel) -> StockMovementModel:
        self.session.add(movement)
        await self.session.flush()
        return movement

    async def net_movement(self, item_id: int) -> int:
        stmt = select(func.coalesce(func.sum(StockMovementModel.quantity_delta), 0)).where(
            StockMovementModel.item_id == item_id
        )
        return int((await self.session.execute(stmt)).scalar_one())

    async def movements_for_log(self, maintenance_log_id: int) -> Sequence[StockMovementModel]:
        stmt = select(StockMovementModel).where(
            StockMovementModel.maintenance_log_id == maintenance_log_id
        )
        return (await self.session.execute(stmt)).scalars().all()

    async def _current_quantity(self, item_id: int) -> int:
        stmt = select(InventoryItemModel.quantity).where(InventoryItemModel.id == item_id)
        return (await self.session.execute(stmt)).scalar_one()


class NotificationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, notification: NotificationModel) -> NotificationModel:
        self.session.add(notification)
        await self.session.flush()
        return notification


class AuditRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, entry: AuditLogModel) -> AuditLogModel:
        self.session.add(entry)
        await self.session.flush()
        return entry


class FaultCommentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, comment: FaultCommentModel) -> FaultCommentModel:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def list_for_fault(
        self, fault_id: int
    ) -> Sequence[tuple[FaultCommentModel, UserModel]]:
        """Comments with their authors, oldest first."""
        stmt = (
            select(FaultCommentModel, UserModel)
            .join(UserModel, FaultCommentModel.user_id == UserModel.id)
            .where(FaultCommentModel.fault_id == fault_id)
            .order_by(FaultCommentModel.created_at, FaultCommentModel.id)
        )
        return [tuple(row) for row in (await self.session.execute(stmt)).all()]


class MetricsSnapshotRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, snapshot: MetricsSnapshotModel) -> MetricsSnapshotModel:
        self.session.add(snapshot)
        await self.session.flush()
        return snapshot

    async def recorded_since(self, since: datetime) -> Sequence[MetricsSnapshotModel]:
        stmt = (
            select(MetricsSnapshotModel)
            .where(MetricsSnapshotModel.recorded_at >= since)
            .order_by(MetricsSnapshotModel.recorded_at, MetricsSnapshotModel.id)
        )
        return (await self.session.execute(stmt)).scalars().all()
