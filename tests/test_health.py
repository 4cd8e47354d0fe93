"""Tests for health check endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from user_lookup.database import get_db
from user_lookup.main import app


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test the health check endpoint."""
    response = await client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["ok"] is True


@pytest.mark.asyncio
async def test_readiness_check(client: AsyncClient):
    """Test the readiness check endpoint."""
    response = await client.get("/readyz")
    assert response.status_code == 200
    assert response.json()["ready"] is True


@pytest.mark.asyncio
async def test_readiness_check_without_database(client: AsyncClient):
    """Readiness fails when the database cannot be queried."""
    broken = AsyncMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

    async def override_get_db():
        yield broken

    app.dependency_overrides[get_db] = override_get_db

    response = await client.get("/readyz")

    assert response.status_code == 503
    assert response.json() == {"ready": False}
