"""Health endpoint tests."""

import shutil
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["storage"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_database_unreachable(client, monkeypatch):
    async def broken_execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(AsyncSession, "execute", broken_execute)
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["database"].startswith("error:")


@pytest.mark.asyncio
async def test_health_degraded_when_upload_dir_missing(client, test_settings):
    shutil.rmtree(Path(test_settings.upload_dir) / "posts")
    data = (await client.get("/health")).json()
    assert data["status"] == "degraded"
    assert data["storage"] == "error: missing posts/"
    assert data["database"] == "ok"
