"""SQLAlchemy async database models for telops.

Maps the operations schema: components, faults with their comments,
maintenance logs, inventory with its movement ledger, notifications, metrics
snapshots and the audit trail.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class UserModel(Base):
    """Operator account. Managed by the auth service; read-only for the core."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(100), unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="Technician")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('Admin', 'Manager', 'Technician', 'Staff')", name="check_user_role"
        ),
        CheckConstraint("status IN ('Active', 'Inactive')", name="check_user_status"),
        Index("idx_users_role_status", "role", "status"),
    )

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username


class ComponentModel(Base):
    """Managed piece of network infrastructure (router, switch, cable, ...)."""

    __tablename__ = "network_components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('Active', 'Inactive', 'Maintenance', 'Faulty')",
            name="check_component_status",
        ),
        Index("idx_components_status", "status"),
    )


class FaultModel(Base):
    """Fault ticket raised against a component.

    ``version`` is the optimistic concurrency token: every flush of a changed
    row bumps it and a stale write raises ``StaleDataError``.
    """

    __tablename__ = "faults"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    component_id: Mapped[int | None] = mapped_column(
        ForeignKey("network_components.id"), index=True
    )
    reported_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="Medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Open")

    # Lifecycle timestamps
    reported_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime)
    started_at: Mapped[datetime | None] = mapped_column(DateTime)
    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime)
    response_time_minutes: Mapped[int | None] = mapped_column(Integer)
    resolution_notes: Mapped[str | None] = mapped_column(Text)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "priority IN ('Critical', 'High', 'Medium', 'Low')", name="check_fault_priority"
        ),
        CheckConstraint(
            "status IN ('Open', 'Pending', 'In Progress', 'Resolved', 'Closed')",
            name="check_fault_status",
        ),
        CheckConstraint(
            "response_time_minutes IS NULL OR response_time_minutes >= 0",
            name="check_response_time_non_negative",
        ),
        Index("idx_faults_component_status", "component_id", "status"),
        Index("idx_faults_reported_at", "reported_at"),
        Index("idx_faults_resolved_at", "resolved_at"),
    )


class MaintenanceLogModel(Base):
    """Maintenance action performed on a component."""

    __tablename__ = "maintenance_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    component_id: Mapped[int] = mapped_column(
        ForeignKey("network_components.id"), nullable=False, index=True
    )
    technician_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    action_taken: Mapped[str] = mapped_column(Text, nullable=False)
    result: Mapped[str] = mapped_column(String(50), nullable=False, default="Success")
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    maintenance_type: Mapped[str] = mapped_column(String(50), nullable=False, default="scheduled")
    activity_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class InventoryItemModel(Base):
    """Consumable stock item. ``quantity`` changes only through the ledger."""

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_level: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    location: Mapped[str | None] = mapped_column(String(100))

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="check_quantity_non_negative"),
        CheckConstraint("min_level >= 0", name="check_min_level_non_negative"),
    )


class StockMovementModel(Base):
    """Append-only ledger entry justifying every quantity change."""

    __tablename__ = "inventory_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    actor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))

    # Issuance recipient / originating maintenance entry
    technician_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    maintenance_log_id: Mapped[int | None] = mapped_column(
        ForeignKey("maintenance_logs.id", ondelete="CASCADE"), index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity_delta <> 0", name="check_delta_non_zero"),
        CheckConstraint(
            "movement_type IN ('usage', 'issuance', 'maintenance', 'restock')",
            name="check_movement_type",
        ),
    )


class NotificationModel(Base):
    """Per-user notification. The core inserts; users flip ``is_read``."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(255))
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class AuditLogModel(Base):
    """Immutable record of a mutating operation."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(50))
    entity_id: Mapped[int | None] = mapped_column(Integer)
    details: Mapped[dict | None] = mapped_column(JSON)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_audit_entity", "entity_type", "entity_id"),)


class FaultCommentModel(Base):
    """Free-text discussion entry on a fault ticket."""

    __tablename__ = "fault_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fault_id: Mapped[int] = mapped_column(
        ForeignKey("faults.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class MetricsSnapshotModel(Base):
    """Point-in-time copy of the headline figures, kept for trend charts."""

    __tablename__ = "metrics_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    uptime_percent: Mapped[float] = mapped_column(Float, nullable=False)
    total_faults_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    resolved_faults_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_response_time: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    active_components: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    components_in_maintenance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
