"""
Snippet vault session.

Ties the item store, the embedding cache and the search controller
together. Every mutation supersedes any running search and resets the
display to the unranked list; deletions are followed by a prune
checkpoint so the cache never keeps vectors for snippets that are gone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from snippet_vault.logging import get_logger
from snippet_vault.services.item_store import DOMAINS, validate_domain, validate_text
from snippet_vault.services.search_controller import SearchController

if TYPE_CHECKING:
    from snippet_vault.services.embedder_client import EmbedderClient
    from snippet_vault.services.embedding_cache import EmbeddingCache
    from snippet_vault.services.item_store import Domain, ItemStore, Snippet
    from snippet_vault.services.search_controller import SearchOutcome, SearchView


class SnippetVault:
    """
    One vault session over both storage domains.

    Attributes:
        items: Domain-aware snippet store
        cache: Snippet id to vector cache
        embedder: Embedding model client
        search_controller: Search state for the session
    """

    def __init__(
        self,
        items: ItemStore,
        cache: EmbeddingCache,
        embedder: EmbedderClient,
    ) -> None:
        self.items = items
        self.cache = cache
        self.embedder = embedder
        self.search_controller = SearchController(items, cache, embedder)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """Check whether the session has been loaded."""
        return self._loaded

    async def load(self) -> None:
        """
        Load every domain and the embedding cache, then prune orphans.

        Raises:
            StorageDecodeError: If stored snippets or vectors are malformed
            StorageFailureError: If a storage read or write fails
        """
        await self.items.load_all()
        await self.cache.load()
        await self._checkpoint()
        self.search_controller.reset()
        self._loaded = True

        get_logger(__name__).info(
            "Vault loaded",
            extra={"counts": self.counts(), "cached_vectors": len(self.cache)},
        )

    async def _checkpoint(self) -> None:
        """Drop vectors of snippets that no longer exist; flush only if needed."""
        if self.cache.prune(self.items.live_ids()):
            await self.cache.flush()

    def list_items(self, domain: str) -> list[Snippet]:
        """Get a domain's snippets in stored order."""
        return self.items.items(domain)

    def all_items(self) -> list[Snippet]:
        """Get every snippet, domains in fixed order."""
        return self.items.all_items()

    def counts(self) -> dict[Domain, int]:
        """Get the number of snippets per domain."""
        return {domain: self.items.count(domain) for domain in DOMAINS}

    async def create_item(
        self,
        text: str,
        domain: str,
        source_url: str | None = None,
    ) -> Snippet:
        """
        Embed a new snippet, then store it together with its vector.

        The text is embedded before anything is written, so a failed
        embedding stores nothing and the capture can simply be retried.

        Raises:
            InvalidInputError: If text is empty or the domain is unknown
            EmbedderUnavailableError: If the model cannot be loaded
            EmbeddingFailedError: If computing the vector fails
            StorageFailureError: If a write fails
        """
        validate_text(text)
        validate_domain(domain)
        vector = await self.embedder.embed(text)

        snippet = await self.items.create_item(text, domain, source_url)
        self.search_controller.reset()
        self.cache.put(snippet.id, vector)
        await self.cache.flush()
        return snippet

    async def delete_item(self, domain: str, item_id: str) -> Snippet:
        """
        Delete one snippet and its cached vector.

        Raises:
            NotFoundError: If the id is not in the domain
            StorageFailureError: If a write fails
        """
        removed = await self.items.delete_item(domain, item_id)
        self.search_controller.reset()
        await self._checkpoint()
        return removed

    async def move_item(self, item_id: str, from_domain: str, to_domain: str) -> Snippet:
        """
        Move a snippet between domains. Its cached vector is kept.

        Raises:
            InvalidInputError: If the domains are unknown or identical
            NotFoundError: If the id is not in the source domain
            DuplicateInTargetError: If the id already exists in the target
            StorageFailureError: If a write fails
        """
        moved = await self.items.move_item(item_id, from_domain, to_domain)
        self.search_controller.reset()
        return moved

    async def clear_domain(self, domain: str) -> int:
        """
        Delete every snippet in a domain and prune their vectors.

        Returns:
            Number of snippets removed
        """
        removed = await self.items.clear(domain)
        self.search_controller.reset()
        await self._checkpoint()
        return removed

    async def search(self, query: str) -> SearchOutcome:
        """Run a search over every domain."""
        return await self.search_controller.search(query)

    def search_view(self) -> SearchView:
        """Get the currently displayed search state."""
        return self.search_controller.view()
