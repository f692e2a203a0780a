"""Operational KPI metrics for the network operations dashboard.

Derives uptime, MTTR, fault frequency, resolution rate, availability, first
response time and per-technician performance over a trailing day window,
plus a per-component health score. Nothing here writes except
``MetricsAggregator.record_snapshot``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional

import structlog
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from telops.core.clock import Clock, utcnow
from telops.db.models import ComponentModel, FaultModel, UserModel
from telops.models import (
    RESOLVED_FAULT_STATUSES,
    TECHNICIAN_ROLES,
    ComponentStatus,
    UserStatus,
)
from telops.reporting.trends import (
    FaultStatsSummary,
    MetricsHistory,
    MetricsSnapshot,
    build_snapshot,
    compute_fault_stats,
    compute_history,
)

if TYPE_CHECKING:
    from telops.db.connection import Database

logger = structlog.get_logger(__name__)

MINUTES_PER_DAY = 1440

# Health score deductions
OPEN_FAULT_PENALTY = 15
FAULT_HISTORY_PENALTY = 2
FAULT_HISTORY_PENALTY_CAP = 20
SLOW_RESOLUTION_THRESHOLD_MINUTES = 120
SLOW_RESOLUTION_PENALTY = 10
STATUS_PENALTIES = {
    ComponentStatus.MAINTENANCE.value: 10,
    ComponentStatus.FAULTY.value: 30,
    ComponentStatus.INACTIVE.value: 20,
}

_RESOLVED = [status.value for status in RESOLVED_FAULT_STATUSES]


@dataclass
class TechnicianPerformance:
    technician_id: int
    name: str
    assigned_count: int
    resolved_count: int
    avg_resolution_time: float


@dataclass
class KpiMetrics:
    """Time-windowed operational KPIs."""

    window_days: int

    # Infrastructure
    total_components: int
    uptime_percent: float
    availability_percent: float
    component_counts: dict[str, int]

    # Fault handling
    faults_in_window: int
    fault_frequency_daily: float
    resolution_rate_percent: float
    mttr_minutes: float
    avg_first_response_minutes: float
    open_fault_counts: dict[str, int]

    technician_performance: list[TechnicianPerformance] = field(default_factory=list)

    computed_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.computed_at is not None:
            data["computed_at"] = self.computed_at.isoformat()
        return data


@dataclass
class ComponentHealth:
    component_id: int
    name: str
    type: str
    status: str
    location: str
    total_faults: int
    open_faults: int
    avg_resolution_time: Optional[float]
    last_fault_date: Optional[datetime]
    health_score: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.last_fault_date is not None:
            data["last_fault_date"] = self.last_fault_date.isoformat()
        return data


def _avg(values: list[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


async def compute_kpi_metrics(
    session: AsyncSession, window_days: int, now: datetime
) -> KpiMetrics:
    """Calculate KPI metrics for the ``window_days`` days before ``now``.

    Args:
        session: Database session
        window_days: Window length in days (positive)
        now: End of the window (naive UTC)

    Returns:
        KpiMetrics with every figure rounded to 2 decimals
    """
    since = now - timedelta(days=window_days)

    # Component status distribution
    status_rows = (
        await session.execute(
            select(ComponentModel.status, func.count()).group_by(ComponentModel.status)
        )
    ).all()
    component_counts = {status: count for status, count in status_rows}
    total_components = sum(component_counts.values())
    active_components = component_counts.get(ComponentStatus.ACTIVE.value, 0)

    uptime_percent = (
        round(active_components / total_components * 100, 2) if total_components else 100.0
    )

    # Resolution times of faults resolved in the window
    response_times = [
        value
        for value in (
            await session.execute(
                select(FaultModel.response_time_minutes).where(
                    FaultModel.resolved_at >= since,
                    FaultModel.response_time_minutes.is_not(None),
                )
            )
        ).scalars()
    ]
    mttr_minutes = _avg(response_times)

    if total_components:
        capacity = window_days * MINUTES_PER_DAY * total_components
        availability_percent = round(
            max(0.0, (capacity - sum(response_times)) / capacity * 100), 2
        )
    else:
        availability_percent = 100.0

    # Faults reported in the window
    reported_statuses = (
        await session.execute(select(FaultModel.status).where(FaultModel.reported_at >= since))
    ).scalars().all()
    faults_in_window = len(reported_statuses)
    resolved_in_window = sum(1 for status in reported_statuses if status in _RESOLVED)
    fault_frequency_daily = round(faults_in_window / window_days, 2)
    resolution_rate_percent = (
        round(resolved_in_window / faults_in_window * 100, 2) if faults_in_window else 0.0
    )

    # First response: report -> first assignment
    assignment_rows = (
        await session.execute(
            select(FaultModel.reported_at, FaultModel.assigned_at).where(
                FaultModel.assigned_at >= since
            )
        )
    ).all()
    first_responses = [
        max(0.0, (assigned_at - reported_at).total_seconds() / 60)
        for reported_at, assigned_at in assignment_rows
    ]
    avg_first_response_minutes = _avg(first_responses)

    # Unresolved faults by status (all time)
    open_rows = (
        await session.execute(
            select(FaultModel.status, func.count())
            .where(FaultModel.status.not_in(_RESOLVED))
            .group_by(FaultModel.status)
        )
    ).all()
    open_fault_counts = {status: count for status, count in open_rows}

    technician_performance = await _technician_performance(session, since)

    return KpiMetrics(
        window_days=window_days,
        total_components=total_components,
        uptime_percent=uptime_percent,
        availability_percent=availability_percent,
        component_counts=component_counts,
        faults_in_window=faults_in_window,
        fault_frequency_daily=fault_frequency_daily,
        resolution_rate_percent=resolution_rate_percent,
        mttr_minutes=mttr_minutes,
        avg_first_response_minutes=avg_first_response_minutes,
        open_fault_counts=open_fault_counts,
        technician_performance=technician_performance,
        computed_at=now,
    )


async def _technician_performance(
    session: AsyncSession, since: datetime
) -> list[TechnicianPerformance]:
    """Per-technician workload for the window.

    Lists every active technician, plus anyone since deactivated who still has
    assigned or resolved faults in the window.
    """
    assigned = dict(
        (
            await session.execute(
                select(FaultModel.assigned_to, func.count())
                .where(FaultModel.assigned_to.is_not(None), FaultModel.reported_at >= since)
                .group_by(FaultModel.assigned_to)
            )
        ).all()
    )

    resolved = {
        technician_id: (count, avg_time)
        for technician_id, count, avg_time in (
            await session.execute(
                select(
                    FaultModel.assigned_to,
                    func.count(),
                    func.avg(FaultModel.response_time_minutes),
                )
                .where(
                    FaultModel.assigned_to.is_not(None),
                    FaultModel.resolved_at >= since,
                    FaultModel.status.in_(_RESOLVED),
                )
                .group_by(FaultModel.assigned_to)
            )
        ).all()
    }

    technicians = (
        await session.execute(
            select(UserModel).where(
                or_(
                    and_(
                        UserModel.role.in_([role.value for role in TECHNICIAN_ROLES]),
                        UserModel.status == UserStatus.ACTIVE.value,
                    ),
                    UserModel.id.in_(sorted(set(assigned) | set(resolved))),
                )
            )
        )
    ).scalars().all()

    performance = []
    for technician in technicians:
        resolved_count, avg_time = resolved.get(technician.id, (0, None))
        performance.append(
            TechnicianPerformance(
                technician_id=technician.id,
                name=technician.full_name,
                assigned_count=assigned.get(technician.id, 0),
                resolved_count=resolved_count,
                avg_resolution_time=round(float(avg_time), 2) if avg_time is not None else 0.0,
            )
        )

    performance.sort(key=lambda row: (-row.resolved_count, row.name))
    return performance


def health_score(
    status: str,
    open_faults: int,
    total_faults: int,
    avg_resolution_time: float | None,
) -> int:
    """Score a component from 0 (unhealthy) to 100 (healthy)."""
    score = 100
    score -= open_faults * OPEN_FAULT_PENALTY
    score -= min(total_faults * FAULT_HISTORY_PENALTY, FAULT_HISTORY_PENALTY_CAP)
    if avg_resolution_time is not None and avg_resolution_time > SLOW_RESOLUTION_THRESHOLD_MINUTES:
        score -= SLOW_RESOLUTION_PENALTY
    score -= STATUS_PENALTIES.get(status, 0)
    return max(0, min(100, score))


async def compute_component_health(session: AsyncSession) -> list[ComponentHealth]:
    """Health score per component, least healthy first."""
    open_case = case((FaultModel.status.not_in(_RESOLVED), 1), else_=0)
    stmt = (
        select(
            ComponentModel,
            func.count(FaultModel.id),
            func.coalesce(func.sum(open_case), 0),
            func.avg(FaultModel.response_time_minutes),
            func.max(FaultModel.reported_at),
        )
        .outerjoin(FaultModel, FaultModel.component_id == ComponentModel.id)
        .group_by(ComponentModel.id)
    )

    rows = []
    for component, total_faults, open_faults, avg_time, last_fault in (
        await session.execute(stmt)
    ).all():
        avg_resolution = round(float(avg_time), 2) if avg_time is not None else None
        rows.append(
            ComponentHealth(
                component_id=component.id,
                name=component.name,
                type=component.type,
                status=component.status,
                location=component.location,
                total_faults=total_faults,
                open_faults=int(open_faults),
                avg_resolution_time=avg_resolution,
                last_fault_date=last_fault,
                health_score=health_score(
                    component.status, int(open_faults), total_faults, avg_resolution
                ),
            )
        )

    rows.sort(key=lambda row: (-row.open_faults, -row.total_faults, row.component_id))
    return rows


class MetricsAggregator:
    """Session-owning facade over the KPI computations."""

    def __init__(self, database: Database, clock: Clock = utcnow) -> None:
        self.database = database
        self.clock = clock

    async def kpi_summary(self, window_days: int) -> KpiMetrics:
        async with self.database.session() as session:
            return await compute_kpi_metrics(session, window_days, self.clock())

    async def component_health(self) -> list[ComponentHealth]:
        async with self.database.session() as session:
            return await compute_component_health(session)

    async def fault_stats(self) -> FaultStatsSummary:
        async with self.database.session() as session:
            return await compute_fault_stats(session)

    async def record_snapshot(self) -> MetricsSnapshot:
        """Persist today's headline figures for the history charts."""
        async with self.database.unit_of_work() as uow:
            row = await uow.snapshots.add(await build_snapshot(uow.session, self.clock()))
            await uow.commit()
            snapshot = MetricsSnapshot.from_model(row)

        logger.info(
            "metrics_snapshot_recorded",
            snapshot_id=snapshot.id,
            uptime_percent=snapshot.uptime_percent,
            total_faults_today=snapshot.total_faults_today,
        )
        return snapshot

    async def history(self, window_days: int) -> MetricsHistory:
        async with self.database.session() as session:
            return await compute_history(session, window_days, self.clock())
