"""Fault statistics, metrics snapshots and day-by-day history.

Snapshots freeze the headline figures of one moment so that trends survive
later edits to fault rows; the daily series are recomputed from the faults
table on every call.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from telops.db.models import ComponentModel, FaultModel, MetricsSnapshotModel
from telops.db.repositories import MetricsSnapshotRepository
from telops.models import RESOLVED_FAULT_STATUSES, ComponentStatus, FaultPriority

_RESOLVED = [status.value for status in RESOLVED_FAULT_STATUSES]

# "Critical" -> DailyFaultCount.critical
_PRIORITY_COUNTERS = {priority.value: priority.value.lower() for priority in FaultPriority}


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class FaultStatsSummary:
    """All-time fault counts, as shown on the fault list header."""

    by_status: dict[str, int]
    by_priority: dict[str, int]
    by_category: dict[str, int]
    avg_resolution_time: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MetricsSnapshot:
    id: int
    recorded_at: datetime
    uptime_percent: float
    total_faults_today: int
    resolved_faults_today: int
    avg_response_time: float
    active_components: int
    components_in_maintenance: int

    @classmethod
    def from_model(cls, row: MetricsSnapshotModel) -> MetricsSnapshot:
        return cls(
            id=row.id,
            recorded_at=row.recorded_at,
            uptime_percent=row.uptime_percent,
            total_faults_today=row.total_faults_today,
            resolved_faults_today=row.resolved_faults_today,
            avg_response_time=row.avg_response_time,
            active_components=row.active_components,
            components_in_maintenance=row.components_in_maintenance,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["recorded_at"] = self.recorded_at.isoformat()
        return data


@dataclass
class DailyFaultCount:
    date: date
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


@dataclass
class DailyResolution:
    date: date
    avg_time: float
    min_time: int
    max_time: int
    count: int


@dataclass
class MetricsHistory:
    """Daily series over the last ``window_days`` calendar days plus today."""

    window_days: int
    faults_per_day: list[DailyFaultCount] = field(default_factory=list)
    resolution_times: list[DailyResolution] = field(default_factory=list)
    snapshots: list[MetricsSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_days": self.window_days,
            "faults_per_day": [
                {**asdict(row), "date": row.date.isoformat()} for row in self.faults_per_day
            ],
            "resolution_times": [
                {**asdict(row), "date": row.date.isoformat()} for row in self.resolution_times
            ],
            "snapshots": [snapshot.to_dict() for snapshot in self.snapshots],
        }


async def compute_fault_stats(session: AsyncSession) -> FaultStatsSummary:
    async def _grouped(column) -> dict[str, int]:
        rows = (
            await session.execute(select(column, func.count()).group_by(column).order_by(column))
        ).all()
        return {key: count for key, count in rows}

    avg_time = (
        await session.execute(
            select(func.avg(FaultModel.response_time_minutes)).where(
                FaultModel.response_time_minutes.is_not(None)
            )
        )
    ).scalar_one()

    return FaultStatsSummary(
        by_status=await _grouped(FaultModel.status),
        by_priority=await _grouped(FaultModel.priority),
        by_category=await _grouped(FaultModel.category),
        avg_resolution_time=round(float(avg_time), 2) if avg_time is not None else 0.0,
    )


async def build_snapshot(session: AsyncSession, now: datetime) -> MetricsSnapshotModel:
    """Collect today's headline figures into an unsaved snapshot row."""
    today = start_of_day(now)

    component_counts = dict(
        (
            await session.execute(
                select(ComponentModel.status, func.count()).group_by(ComponentModel.status)
            )
        ).all()
    )
    total_components = sum(component_counts.values())
    active = component_counts.get(ComponentStatus.ACTIVE.value, 0)

    reported_today = (
        await session.execute(select(FaultModel.status).where(FaultModel.reported_at >= today))
    ).scalars().all()

    avg_time = (
        await session.execute(
            select(func.avg(FaultModel.response_time_minutes)).where(
                FaultModel.resolved_at >= today,
                FaultModel.response_time_minutes.is_not(None),
            )
        )
    ).scalar_one()

    return MetricsSnapshotModel(
        recorded_at=now,
        uptime_percent=round(active / total_components * 100, 2) if total_components else 100.0,
        total_faults_today=len(reported_today),
        resolved_faults_today=sum(1 for status in reported_today if status in _RESOLVED),
        avg_response_time=round(float(avg_time), 2) if avg_time is not None else 0.0,
        active_components=active,
        components_in_maintenance=component_counts.get(ComponentStatus.MAINTENANCE.value, 0),
    )


async def compute_history(
    session: AsyncSession, window_days: int, now: datetime
) -> MetricsHistory:
    """Faults per day by priority, daily resolution times and stored snapshots.

    The window starts at midnight ``window_days`` days before today, so today
    is always included as a partial day.
    """
    since = start_of_day(now) - timedelta(days=window_days)

    per_day: dict[date, DailyFaultCount] = {}
    reported = (
        await session.execute(
            select(FaultModel.reported_at, FaultModel.priority).where(
                FaultModel.reported_at >= since
            )
        )
    ).all()
    for reported_at, priority in reported:
        day = reported_at.date()
        bucket = per_day.setdefault(day, DailyFaultCount(date=day))
        bucket.total += 1
        counter = _PRIORITY_COUNTERS.get(priority)
        if counter is not None:
            setattr(bucket, counter, getattr(bucket, counter) + 1)

    durations: dict[date, list[int]] = defaultdict(list)
    resolved = (
        await session.execute(
            select(FaultModel.resolved_at, FaultModel.response_time_minutes).where(
                FaultModel.resolved_at >= since,
                FaultModel.response_time_minutes.is_not(None),
            )
        )
    ).all()
    for resolved_at, minutes in resolved:
        durations[resolved_at.date()].append(minutes)

    snapshots = await MetricsSnapshotRepository(session).recorded_since(since)

    return MetricsHistory(
        window_days=window_days,
        faults_per_day=[per_day[day] for day in sorted(per_day)],
        resolution_times=[
            DailyResolution(
                date=day,
                avg_time=round(sum(values) / len(values), 2),
                min_time=min(values),
                max_time=max(values),
                count=len(values),
            )
            for day, values in sorted(durations.items())
        ],
        snapshots=[MetricsSnapshot.from_model(row) for row in snapshots],
    )
