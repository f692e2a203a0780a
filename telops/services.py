"""Service wiring.

Builds every lifecycle service around one injected ``Database`` so the web
app, the CLI and tests share the same construction path.
"""

from __future__ import annotations

from dataclasses import dataclass

from telops.components.synchronizer import ComponentStatusSynchronizer
from telops.config import AppConfig
from telops.core.audit_logger import AuditRecorder
from telops.core.clock import Clock, utcnow
from telops.db.connection import Database
from telops.faults.service import FaultLifecycleManager
from telops.inventory.ledger import InventoryLedger
from telops.inventory.service import InventoryService
from telops.maintenance.service import MaintenanceRecorder
from telops.notifications.dispatcher import DEFAULT_LOW_STOCK_ROLES, NotificationDispatcher
from telops.reporting.kpi_metrics import MetricsAggregator


@dataclass
class Services:
    database: Database
    audit: AuditRecorder
    dispatcher: NotificationDispatcher
    synchronizer: ComponentStatusSynchronizer
    ledger: InventoryLedger
    faults: FaultLifecycleManager
    maintenance: MaintenanceRecorder
    inventory: InventoryService
    metrics: MetricsAggregator
    default_time_range: str = "monthly"


def build_services(
    database: Database,
    config: AppConfig | None = None,
    clock: Clock = utcnow,
) -> Services:
    low_stock_roles = config.inventory.low_stock_roles if config else DEFAULT_LOW_STOCK_ROLES
    default_min_level = config.inventory.default_min_level if config else 5
    default_time_range = config.metrics.default_time_range if config else "monthly"

    audit = AuditRecorder(database)
    dispatcher = NotificationDispatcher(database, low_stock_roles=low_stock_roles)
    synchronizer = ComponentStatusSynchronizer(database)
    ledger = InventoryLedger(clock=clock)

    return Services(
        database=database,
        audit=audit,
        dispatcher=dispatcher,
        synchronizer=synchronizer,
        ledger=ledger,
        faults=FaultLifecycleManager(database, synchronizer, dispatcher, audit, clock=clock),
        maintenance=MaintenanceRecorder(database, ledger, dispatcher, audit, clock=clock),
        inventory=InventoryService(
            database, ledger, dispatcher, audit, default_min_level=default_min_level
        ),
        metrics=MetricsAggregator(database, clock=clock),
        default_time_range=default_time_range,
    )
