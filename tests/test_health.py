"""Tests for health, readiness, version and endpoint listing."""

import pytest
from httpx import AsyncClient

from nadeko_connector.config import Settings
from tests.conftest import app_client


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready(client: AsyncClient) -> None:
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert "environment" in data


@pytest.mark.asyncio
async def test_endpoints_listing(client: AsyncClient) -> None:
    data = (await client.get("/endpoints")).json()
    assert len(data["endpoints"]) == 26
    assert data["readOnly"] is False


@pytest.mark.asyncio
async def test_endpoints_listing_read_only(settings: Settings) -> None:
    settings = settings.model_copy(update={"read_only": True, "disabled_endpoints": ["getTables"]})
    async with app_client(settings) as client:
        data = (await client.get("/endpoints")).json()
    assert data["readOnly"] is True
    assert "setCurrency" not in data["endpoints"]
    assert "getTables" not in data["endpoints"]
    assert len(data["endpoints"]) == 16
