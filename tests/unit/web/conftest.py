"""Fixtures for route tests against a real throwaway database."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from telops.web.app import create_app

MANAGER_HEADERS = {"X-Actor-Id": "2", "X-Actor-Role": "Manager", "X-Actor-Username": "manager"}
REPORTER_HEADERS = {"X-Actor-Id": "4", "X-Actor-Role": "Staff", "X-Actor-Username": "jdoe"}


@pytest_asyncio.fixture()
async def client(database, seed):
    """HTTP client bound to an app that uses the test database."""
    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
