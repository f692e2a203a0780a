"""Unit of work: one session, one transaction, every repository bound to it."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from telops.db.repositories import (
    AuditRepository,
    ComponentRepository,
    FaultCommentRepository,
    FaultRepository,
    InventoryRepository,
    MaintenanceRepository,
    MetricsSnapshotRepository,
    NotificationRepository,
    UserRepository,
)


class UnitOfWork:
    """Transaction boundary for a lifecycle operation.

    Usage:
        async with database.unit_of_work() as uow:
            fault = await uow.faults.get(fault_id)
            ...
            await uow.commit()

    Anything not committed when the block exits is rolled back.
    """

    session: AsyncSession

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __aenter__(self) -> UnitOfWork:
        self.session = self._session_factory()
        self.users = UserRepository(self.session)
        self.components = ComponentRepository(self.session)
        self.faults = FaultRepository(self.session)
        self.comments = FaultCommentRepository(self.session)
        self.maintenance = MaintenanceRepository(self.session)
        self.inventory = InventoryRepository(self.session)
        self.notifications = NotificationRepository(self.session)
        self.audit = AuditRepository(self.session)
        self.snapshots = MetricsSnapshotRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.session.rollback()
        finally:
            await self.session.close()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
