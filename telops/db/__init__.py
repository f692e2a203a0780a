"""Database layer for telops with async SQLAlchemy."""

from telops.db.connection import Database
from telops.db.models import (
    AuditLogModel,
    Base,
    ComponentModel,
    FaultModel,
    InventoryItemModel,
    MaintenanceLogModel,
    NotificationModel,
    StockMovementModel,
    UserModel,
)
from telops.db.unit_of_work import UnitOfWork

__all__ = [
    "Base",
    "UserModel",
    "ComponentModel",
    "FaultModel",
    "MaintenanceLogModel",
    "InventoryItemModel",
    "StockMovementModel",
    "NotificationModel",
    "AuditLogModel",
    "Database",
    "UnitOfWork",
]
