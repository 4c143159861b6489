"""
Tests for the health check endpoints.
"""
import pytest
from fastapi import status

from korvalia_web import __version__


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["components"]["api"]["status"] == "ok"
    assert data["uptime_seconds"] >= 0


@pytest.mark.asyncio
async def test_detailed_health_with_backend_up(client, backend):
    backend.add("GET", "/cities", json={"success": True, "data": []})

    response = await client.get("/health/detailed")

    data = response.json()
    assert data["status"] == "ok"
    assert data["components"]["backend"]["status"] == "ok"
    assert data["components"]["environment"]["message"] == "Environment: testing"
    assert "process" in data["components"]


@pytest.mark.asyncio
async def test_detailed_health_with_backend_down(client, backend):
    backend.add("GET", "/cities", status_code=503, json={"message": "Mantenimiento"})

    response = await client.get("/health/detailed")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["backend"]["status"] == "error"
    assert data["components"]["backend"]["message"] == "Backend error: Mantenimiento"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
