"""End-to-end lifecycle: a critical outage from report to KPI.

Exercises the services together on one database the way the API drives them:
fault reported, component taken down, technician assigned, maintenance with
parts, resolution, and the metrics that result.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select

from telops.db.models import AuditLogModel, ComponentModel, NotificationModel


@pytest.mark.integration
@pytest.mark.asyncio
async def test_critical_outage_lifecycle(services, database, seed, items, clock):
    # 1. Report a critical fault against the core router
    fault = (
        await services.faults.create(
            seed.reporter,
            title="Core router unreachable",
            category="hardware",
            component_id=seed.router_id,
            priority="Critical",
        )
    ).value

    # 2. Dispatch a technician 10 minutes later
    clock.advance(minutes=10)
    assigned = (
        await services.faults.assign(
            seed.manager, fault.id, seed.technician_id, expected_version=fault.version
        )
    ).value
    assert assigned.status == "In Progress"

    # 3. Technician replaces the optic, consuming the last spare patch cables
    clock.advance(minutes=30)
    record = (
        await services.maintenance.record_maintenance(
            seed.technician,
            seed.router_id,
            "Replaced failed line card optic",
            maintenance_type="corrective",
            parts=[
                {"item_id": items.sfp, "quantity": 1},
                {"item_id": items.patch_cable, "quantity": 2},
            ],
        )
    ).value
    assert [debit.low_stock for debit in record.debits] == [False, True]

    # 4. Resolve 75 minutes after the report
    clock.advance(minutes=35)
    resolved = (
        await services.faults.transition_status(
            seed.technician,
            fault.id,
            "Resolved",
            resolution_notes="Optic replaced",
            expected_version=assigned.version,
        )
    ).value
    assert resolved.response_time_minutes == 75

    async with database.session() as session:
        component = await session.get(ComponentModel, seed.router_id)
        notifications = (
            await session.execute(
                select(NotificationModel.user_id, NotificationModel.type).order_by(
                    NotificationModel.id
                )
            )
        ).all()
        actions = (
            await session.execute(select(AuditLogModel.action).order_by(AuditLogModel.id))
        ).scalars().all()

    assert component.status == "Active"
    assert [tuple(row) for row in notifications] == [
        (3, "fault_assigned"),
        (1, "low_stock"),
        (2, "low_stock"),
        (4, "status_change"),
    ]
    assert actions[-4:] == [
        "CREATE_FAULT",
        "ASSIGN_FAULT",
        "CREATE_MAINTENANCE_LOG",
        "UPDATE_FAULT_STATUS",
    ]

    # 5. KPIs reflect the episode
    metrics = await services.metrics.kpi_summary(1)
    assert metrics.uptime_percent == 100.0
    assert metrics.mttr_minutes == 75.0
    assert metrics.avg_first_response_minutes == 10.0
    assert metrics.resolution_rate_percent == 100.0
    assert metrics.technician_performance[0].resolved_count == 1
