"""Smoke tests for the telops CLI against a temporary SQLite file."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from telops import cli
from telops.config import reset_config

runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    reset_config()
    result = runner.invoke(cli.app, ["init"])
    assert result.exit_code == 0, result.output
    return tmp_path


def test_init_reports_success(cli_db):
    result = runner.invoke(cli.app, ["init", "--drop"])

    assert result.exit_code == 0
    assert "Database initialized" in result.output


def test_kpi_on_empty_database(cli_db):
    result = runner.invoke(cli.app, ["kpi", "--range", "weekly"])

    assert result.exit_code == 0, result.output
    assert "last 7 days" in result.output
    assert "100.00" in result.output


def test_kpi_rejects_unknown_range(cli_db):
    result = runner.invoke(cli.app, ["kpi", "--range", "fortnightly"])

    assert result.exit_code != 0


def test_health_on_empty_database(cli_db):
    result = runner.invoke(cli.app, ["health"])

    assert result.exit_code == 0, result.output
    assert "Component Health" in result.output


def test_snapshot_records_row(cli_db):
    result = runner.invoke(cli.app, ["snapshot"])

    assert result.exit_code == 0, result.output
    assert "Snapshot #1 recorded" in result.output
    assert "uptime 100.00%" in result.output
