"""Pytest configuration and fixtures for telops tests.

Every test gets its own file-backed SQLite database so that the separate
units of work used by the services (primary write, synchronizer,
notifications, audit) all see the same data.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
import pytest_asyncio

from telops.config import reset_config
from telops.db.connection import Database
from telops.db.models import ComponentModel, UserModel
from telops.models import Actor
from telops.services import Services, build_services


class FakeClock:
    """Deterministic clock; tests move time forward explicitly."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    """Isolate tests from the developer's .env."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.delenv("LOW_STOCK_ROLES", raising=False)
    monkeypatch.delenv("DEFAULT_TIME_RANGE", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("JSON_LOGS", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest_asyncio.fixture()
async def database(tmp_path) -> Database:
    """Create a throwaway database with the full schema."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'telops.db'}")
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture()
async def seed(database: Database) -> SimpleNamespace:
    """Users and components shared by most tests.

    Users: admin(1), manager(2), technician(3), staff reporter(4),
    inactive manager(5), inactive technician(6).
    Components: core router(42, Active), access switch(43, Active).
    """
    async with database.session() as session:
        session.add_all(
            [
                UserModel(id=1, username="admin", first_name="Ada", last_name="Admin", role="Admin"),
                UserModel(id=2, username="manager", first_name="Max", last_name="Manager", role="Manager"),
                UserModel(id=3, username="tech", first_name="Tess", last_name="Tech", role="Technician"),
                UserModel(id=4, username="jdoe", first_name="John", last_name="Doe", role="Staff"),
                UserModel(
                    id=5,
                    username="old.manager",
                    first_name="Olga",
                    last_name="Old",
                    role="Manager",
                    status="Inactive",
                ),
                UserModel(
                    id=6,
                    username="old.tech",
                    first_name="Otto",
                    last_name="Old",
                    role="Technician",
                    status="Inactive",
                ),
                ComponentModel(id=42, name="Core Router", type="router", location="DC-1"),
                ComponentModel(id=43, name="Access Switch", type="switch", location="DC-2"),
            ]
        )
        await session.commit()

    return SimpleNamespace(
        admin=Actor(id=1, role="Admin", username="admin"),
        manager=Actor(id=2, role="Manager", username="manager"),
        technician=Actor(id=3, role="Technician", username="tech"),
        reporter=Actor(id=4, role="Staff", username="jdoe"),
        router_id=42,
        switch_id=43,
        technician_id=3,
        inactive_technician_id=6,
    )


@pytest.fixture
def services(database: Database, clock: FakeClock) -> Services:
    return build_services(database, clock=clock)


@pytest_asyncio.fixture()
async def items(services: Services, seed: SimpleNamespace) -> SimpleNamespace:
    """Inventory opened through the ledger so movements back every quantity."""

    async def _open(name, category, quantity, min_level):
        result = await services.inventory.open_item(
            seed.admin, name, category, quantity=quantity, min_level=min_level
        )
        assert result.ok, result
        return result.value.id

    return SimpleNamespace(
        patch_cable=await _open("Fibre Patch Cable", "cabling", 10, 9),
        sfp=await _open("SFP Module", "optics", 3, 1),
        cat6=await _open("Cat6 Cable", "cabling", 50, 5),
    )
