"""Fixtures for API tests."""

import os

# Must be set before config is first imported
os.environ.setdefault("REDIS_ENABLED", "false")
for _name in (
    "SHELL_PLACING_DWELL",
    "SHELL_SHUFFLE_LEAD_IN",
    "SHELL_STEP_INTERVAL",
    "SHELL_SWAP_SETTLE",
    "SHELL_REVEAL_DELAY",
):
    os.environ.setdefault(_name, "0")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def session_id(client):
    """A fresh signed session."""
    response = await client.post("/api/game/new")
    return response.json()["session_id"]
