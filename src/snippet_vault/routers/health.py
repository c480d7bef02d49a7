"""
Health check endpoint.

Provides service health status for container orchestration
(Docker health checks, Kubernetes probes).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter

from snippet_vault.core.state import get_app_state
from snippet_vault.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check service health.

    Health semantics:
    - healthy: snippets and the embedding cache are loaded
    - unhealthy: service is running but the vault is not loaded

    The embedding model loads lazily and does not affect health.

    Returns:
        Health status with uptime and system time
    """
    state = get_app_state()

    # System time in yyyy-mm-dd hh:mm format (UTC)
    system_time = datetime.now(UTC).strftime("%Y-%m-%d %H:%M")

    status: Literal["healthy", "unhealthy"] = "healthy" if state.vault_loaded else "unhealthy"

    return HealthResponse(
        status=status,
        uptime_seconds=state.uptime_seconds,
        uptime=state.uptime_formatted,
        system_time=system_time,
    )
