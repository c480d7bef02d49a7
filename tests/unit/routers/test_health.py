"""Tests for health endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from fastapi.testclient import TestClient


@pytest.mark.unit
class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_healthy_when_vault_loaded(self, client: TestClient) -> None:
        """A loaded vault reports healthy."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0
        assert data["uptime"].endswith("s")
        assert len(data["system_time"]) == len("2024-01-01 12:00")

    def test_unhealthy_without_vault(self, unloaded_client: TestClient) -> None:
        """Without a loaded vault the service reports unhealthy."""
        response = unloaded_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"

    def test_model_not_needed_for_health(self, client: TestClient) -> None:
        """Health does not trigger a model load."""
        client.get("/health")

        info = client.get("/info").json()
        assert info["model"]["initialized"] is False
