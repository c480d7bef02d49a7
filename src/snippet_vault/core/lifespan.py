"""
Application lifecycle management.

Handles startup (storage wiring and vault loading) and shutdown events
for proper resource management.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from snippet_vault.config import Settings, get_settings, resolve_path
from snippet_vault.core.exceptions import EmbedderUnavailableError, StorageFailureError
from snippet_vault.core.state import AppState, init_app_state
from snippet_vault.logging import get_logger, setup_logging
from snippet_vault.services.embedder_client import EmbedderClient
from snippet_vault.services.embedding_cache import EmbeddingCache
from snippet_vault.services.embedding_model import SentenceEmbeddingModel
from snippet_vault.services.item_store import DOMAINS, ItemStore
from snippet_vault.services.kv_store import JsonFileKeyValueStore
from snippet_vault.services.vault import SnippetVault

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from fastapi import FastAPI

    from snippet_vault.services.embedder_client import TextEncoder


def create_model_loader(settings: Settings, state: AppState) -> Callable[[], TextEncoder]:
    """
    Build the blocking loader the embedder client calls on first use.

    The model's output dimension must match the configured one. The
    resolved device is recorded on the app state once loading succeeds.
    """
    model_path = resolve_path(settings.model.path)
    expected = settings.model.embedding_dimension

    def load() -> TextEncoder:
        model = SentenceEmbeddingModel.load(model_path, settings.model.device)
        if model.dimension != expected:
            raise EmbedderUnavailableError(
                f"Model dimension {model.dimension} does not match configured {expected}",
                {"expected": expected, "received": model.dimension},
            )
        state.device = str(model.device)
        return model

    return load


def create_vault(settings: Settings, embedder: EmbedderClient) -> SnippetVault:
    """
    Wire file-backed storage areas into a vault session.

    Args:
        settings: Application settings
        embedder: Embedding model client

    Returns:
        Unloaded vault session
    """
    stores = {
        domain: JsonFileKeyValueStore(
            name=domain,
            path=resolve_path(settings.storage.domains[domain].path),
            quota_bytes=settings.storage.domains[domain].quota_bytes,
        )
        for domain in DOMAINS
    }
    cache_store = JsonFileKeyValueStore(
        name="embeddings",
        path=resolve_path(settings.storage.embeddings_path),
        quota_bytes=None,
    )

    return SnippetVault(
        items=ItemStore(stores),
        cache=EmbeddingCache(cache_store, dimension=settings.model.embedding_dimension),
        embedder=embedder,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Manage application lifecycle.

    Startup:
    - Initialize logging
    - Initialize application state
    - Create the embedder client (the model itself loads on first use)
    - Load snippets and the embedding cache
    - Log startup information

    Shutdown:
    - Flush unsaved cache changes
    - Log shutdown with uptime
    """
    # === STARTUP ===
    settings = get_settings()

    # Initialize logging first
    setup_logging(settings.logging.level, settings.service.name, settings.logging.format)
    logger = get_logger()

    # Initialize application state
    state = init_app_state()

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
        },
    )

    embedder = EmbedderClient(
        loader=create_model_loader(settings, state),
        dimension=settings.model.embedding_dimension,
    )
    state.embedder = embedder

    vault = create_vault(settings, embedder)

    try:
        await vault.load()
    except Exception:
        logger.exception(
            "Failed to load vault",
            extra={"embeddings_path": settings.storage.embeddings_path},
        )
        raise

    state.vault = vault

    logger.info(
        "Service ready to accept requests",
        extra={
            "counts": vault.counts(),
            "cached_embeddings": len(vault.cache),
            "model": settings.model.name,
        },
    )

    yield  # Application runs here

    # === SHUTDOWN ===
    if vault.cache.dirty:
        try:
            await vault.cache.flush()
        except StorageFailureError:
            logger.exception("Failed to flush embedding cache on shutdown")

    logger.info(
        "Service shutting down",
        extra={
            "uptime_seconds": state.uptime_seconds,
            "uptime": state.uptime_formatted,
        },
    )
