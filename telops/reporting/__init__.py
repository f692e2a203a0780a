"""Reporting and KPI aggregation."""

from telops.reporting.kpi_metrics import (
    ComponentHealth,
    KpiMetrics,
    MetricsAggregator,
    TechnicianPerformance,
    compute_component_health,
    compute_kpi_metrics,
)
from telops.reporting.trends import (
    FaultStatsSummary,
    MetricsHistory,
    MetricsSnapshot,
    compute_fault_stats,
    compute_history,
)

__all__ = [
    "ComponentHealth",
    "FaultStatsSummary",
    "KpiMetrics",
    "MetricsAggregator",
    "MetricsHistory",
    "MetricsSnapshot",
    "TechnicianPerformance",
    "compute_component_health",
    "compute_fault_stats",
    "compute_history",
    "compute_kpi_metrics",
]
