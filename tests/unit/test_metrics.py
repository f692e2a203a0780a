"""Tests for KPI metrics and component health scoring."""

from __future__ import annotations

from datetime import timedelta

import pytest

from telops.db.models import ComponentModel, FaultModel, UserModel
from telops.reporting.kpi_metrics import health_score


@pytest.fixture
def fault_history(database, seed, clock):
    """Four faults around a fixed 'now'; one falls outside a 30-day window."""
    now = clock.now

    def _fault(component_id, reported_days_ago, status, assigned_after=None, response=None):
        reported_at = now - timedelta(days=reported_days_ago)
        fault = FaultModel(
            component_id=component_id,
            reported_by=4,
            title="Fault",
            category="connectivity",
            status=status,
            reported_at=reported_at,
        )
        if assigned_after is not None:
            fault.assigned_to = 3
            fault.assigned_at = reported_at + timedelta(minutes=assigned_after)
        if response is not None:
            fault.resolved_at = reported_at + timedelta(minutes=response)
            fault.response_time_minutes = response
        return fault

    async def _load():
        async with database.session() as session:
            session.add_all(
                [
                    _fault(42, 2, "Resolved", assigned_after=10, response=60),
                    _fault(42, 1, "Closed", assigned_after=20, response=120),
                    _fault(43, 3, "Open"),
                    _fault(43, 40, "Resolved", assigned_after=5, response=30),
                ]
            )
            switch = await session.get(ComponentModel, 43)
            switch.status = "Faulty"
            await session.commit()

    return _load


class TestKpiSummary:
    @pytest.mark.asyncio
    async def test_monthly_window(self, services, fault_history, clock):
        await fault_history()

        metrics = await services.metrics.kpi_summary(30)

        assert metrics.window_days == 30
        assert metrics.total_components == 2
        assert metrics.uptime_percent == 50.0
        assert metrics.mttr_minutes == 90.0
        assert metrics.faults_in_window == 3
        assert metrics.fault_frequency_daily == 0.1
        assert metrics.resolution_rate_percent == 66.67
        assert metrics.availability_percent == 99.79
        assert metrics.avg_first_response_minutes == 15.0
        assert metrics.component_counts == {"Active": 1, "Faulty": 1}
        assert metrics.open_fault_counts == {"Open": 1}
        assert metrics.computed_at == clock.now

        [tech] = metrics.technician_performance
        assert tech.technician_id == 3
        assert tech.name == "Tess Tech"
        assert tech.assigned_count == 2
        assert tech.resolved_count == 2
        assert tech.avg_resolution_time == 90.0

    @pytest.mark.asyncio
    async def test_deactivated_technician_keeps_window_figures(
        self, services, database, fault_history
    ):
        await fault_history()
        async with database.session() as session:
            technician = await session.get(UserModel, 3)
            technician.status = "Inactive"
            await session.commit()

        metrics = await services.metrics.kpi_summary(30)

        [tech] = metrics.technician_performance
        assert tech.technician_id == 3
        assert tech.resolved_count == 2
        assert tech.assigned_count == 2

    @pytest.mark.asyncio
    async def test_yearly_window_includes_older_faults(self, services, fault_history):
        await fault_history()

        metrics = await services.metrics.kpi_summary(365)

        assert metrics.mttr_minutes == 70.0
        assert metrics.faults_in_window == 4
        assert metrics.resolution_rate_percent == 75.0
        assert metrics.fault_frequency_daily == 0.01

    @pytest.mark.asyncio
    async def test_empty_system_defaults(self, services, database):
        metrics = await services.metrics.kpi_summary(7)

        assert metrics.total_components == 0
        assert metrics.uptime_percent == 100.0
        assert metrics.availability_percent == 100.0
        assert metrics.mttr_minutes == 0.0
        assert metrics.resolution_rate_percent == 0.0
        assert metrics.avg_first_response_minutes == 0.0
        assert metrics.technician_performance == []

    @pytest.mark.asyncio
    async def test_to_dict_is_json_ready(self, services, fault_history):
        await fault_history()

        data = (await services.metrics.kpi_summary(30)).to_dict()

        assert isinstance(data["computed_at"], str)
        assert data["technician_performance"][0]["resolved_count"] == 2


class TestComponentHealth:
    @pytest.mark.asyncio
    async def test_scores_and_ordering(self, services, fault_history):
        await fault_history()

        rows = await services.metrics.component_health()

        assert [row.component_id for row in rows] == [43, 42]
        switch, router = rows
        assert (switch.open_faults, switch.total_faults, switch.health_score) == (1, 2, 51)
        assert switch.avg_resolution_time == 30.0
        assert (router.open_faults, router.total_faults, router.health_score) == (0, 2, 96)
        assert router.last_fault_date is not None

    @pytest.mark.asyncio
    async def test_component_without_faults_is_fully_healthy(self, services, seed):
        rows = await services.metrics.component_health()

        assert {row.health_score for row in rows} == {100}
        assert all(row.avg_resolution_time is None for row in rows)


class TestHealthScore:
    def test_penalties_accumulate_and_clamp(self):
        assert health_score("Active", 0, 0, None) == 100
        assert health_score("Maintenance", 0, 0, None) == 90
        assert health_score("Inactive", 0, 0, None) == 80
        assert health_score("Active", 0, 30, 121) == 70
        assert health_score("Faulty", 10, 50, 500) == 0
