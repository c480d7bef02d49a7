"""
Shared fixtures for unit tests.

Storage is in memory and the embedding model is replaced by a
deterministic fake, so tests run without disk, network or model weights.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from snippet_vault.services.kv_store import InMemoryKeyValueStore
from tests.factories import FakeEmbedder, make_memory_stores, make_vault

if TYPE_CHECKING:
    from snippet_vault.services.vault import SnippetVault


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    """Deterministic embedder with the default test dimension."""
    return FakeEmbedder()


@pytest.fixture
def memory_stores() -> dict[str, InMemoryKeyValueStore]:
    """One empty in-memory storage area per domain."""
    return make_memory_stores()


@pytest.fixture
def cache_store() -> InMemoryKeyValueStore:
    """Empty in-memory storage area for the embedding cache."""
    return InMemoryKeyValueStore("embeddings")


@pytest.fixture
async def vault(
    fake_embedder: FakeEmbedder,
    memory_stores: dict[str, InMemoryKeyValueStore],
    cache_store: InMemoryKeyValueStore,
) -> SnippetVault:
    """Loaded, empty vault session over in-memory storage."""
    session = make_vault(fake_embedder, memory_stores, cache_store)
    await session.load()
    return session
