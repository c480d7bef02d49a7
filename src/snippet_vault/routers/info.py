"""
Service information endpoint.

Exposes service configuration and metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

from snippet_vault.config import get_settings
from snippet_vault.core.state import get_app_state
from snippet_vault.schemas import InfoResponse, ModelInfo, StorageInfo

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """
    Get service information and configuration.

    Returns:
        Service metadata, model status and storage counts
    """
    settings = get_settings()
    state = get_app_state()

    # Resolved device is only known once the model has loaded
    device_str = state.device if state.device else settings.model.device
    initialized = state.embedder is not None and state.embedder.is_initialized

    counts: dict[str, int] = {}
    cached = 0
    if state.vault is not None and state.vault.is_loaded:
        counts = dict(state.vault.counts())
        cached = len(state.vault.cache)

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        model=ModelInfo(
            name=settings.model.name,
            embedding_dimension=settings.model.embedding_dimension,
            device=device_str,
            initialized=initialized,
        ),
        storage=StorageInfo(counts=counts, cached_embeddings=cached),
    )
