"""
Search orchestration with stale-query suppression.

Every search takes a new token. Work for an older token still runs to
completion, but its result is dropped: only the newest token may change
what is displayed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from snippet_vault.core.exceptions import ServiceError
from snippet_vault.logging import get_logger
from snippet_vault.services.embedding_cache import EmbeddingSource
from snippet_vault.services.ranking import RankedSnippet, rank

if TYPE_CHECKING:
    from snippet_vault.services.embedder_client import EmbedderClient
    from snippet_vault.services.embedding_cache import EmbeddingCache
    from snippet_vault.services.item_store import ItemStore

SearchPhase = Literal["idle", "preparing", "ranking", "done", "failed"]
SearchStatus = Literal["idle", "done", "failed", "superseded"]


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one search call, tagged with its token."""

    token: int
    query: str
    status: SearchStatus
    results: list[RankedSnippet] = field(default_factory=list)
    message: str | None = None


@dataclass(frozen=True)
class SearchView:
    """What is currently displayed."""

    token: int
    phase: SearchPhase
    query: str
    results: list[RankedSnippet]
    message: str | None


class SearchController:
    """
    Runs searches over every domain and tracks the displayed result list.

    Phases for the newest token: idle, preparing (filling missing vectors),
    ranking (embedding the query and scoring), then done or failed. A
    failure keeps the previously displayed results.
    """

    def __init__(
        self,
        items: ItemStore,
        cache: EmbeddingCache,
        embedder: EmbedderClient,
    ) -> None:
        self._items = items
        self._cache = cache
        self._embedder = embedder
        self._token = 0
        self._phase: SearchPhase = "idle"
        self._query = ""
        self._message: str | None = None
        self._displayed: list[RankedSnippet] = []

    @property
    def latest_token(self) -> int:
        """The highest token issued so far."""
        return self._token

    @property
    def phase(self) -> SearchPhase:
        """Phase of the newest search."""
        return self._phase

    def view(self) -> SearchView:
        """Snapshot of the displayed state."""
        return SearchView(
            token=self._token,
            phase=self._phase,
            query=self._query,
            results=list(self._displayed),
            message=self._message,
        )

    def unranked(self) -> list[RankedSnippet]:
        """All snippets without scores, domains in fixed order."""
        return [RankedSnippet(snippet=snippet, score=None) for snippet in self._items.all_items()]

    def reset(self) -> int:
        """
        Supersede any in-flight search and show the unranked list.

        Returns:
            The new token
        """
        self._token += 1
        self._show_idle()
        return self._token

    def _show_idle(self) -> None:
        self._phase = "idle"
        self._query = ""
        self._message = None
        self._displayed = self.unranked()

    def _superseded(self, token: int, query: str) -> SearchOutcome:
        get_logger(__name__).debug(
            "Search superseded",
            extra={"token": token, "latest_token": self._token},
        )
        return SearchOutcome(token=token, query=query, status="superseded")

    async def search(self, query: str) -> SearchOutcome:
        """
        Rank every snippet against a query.

        An empty query skips embedding and shows the unranked list.
        Failures are reported in the outcome and leave the displayed
        results untouched.
        """
        logger = get_logger(__name__)
        self._token += 1
        token = self._token
        query = query.strip()

        if not query:
            self._show_idle()
            return SearchOutcome(
                token=token,
                query="",
                status="idle",
                results=list(self._displayed),
            )

        self._phase = "preparing"
        self._query = query
        self._message = "Preparing embeddings..."
        snippets = self._items.all_items()

        try:
            await self._cache.ensure_all(
                [EmbeddingSource(id=s.id, text=s.text) for s in snippets],
                self._embedder,
                is_live=self._items.contains,
            )
            if token != self._token:
                return self._superseded(token, query)

            self._phase = "ranking"
            self._message = "Searching..."
            ranked: list[RankedSnippet] = []
            if snippets:
                query_vector = await self._embedder.embed_query(query)
                if token != self._token:
                    return self._superseded(token, query)
                ranked = rank(query_vector, snippets, self._cache)

        except ServiceError as e:
            if token != self._token:
                return self._superseded(token, query)
            self._phase = "failed"
            self._message = e.message
            logger.warning(
                "Search failed",
                extra={"token": token, "error_code": e.error, "error_message": e.message},
            )
            return SearchOutcome(
                token=token,
                query=query,
                status="failed",
                results=list(self._displayed),
                message=e.message,
            )

        self._phase = "done"
        self._message = None
        self._displayed = ranked
        logger.info("Search completed", extra={"token": token, "results": len(ranked)})
        return SearchOutcome(token=token, query=query, status="done", results=list(ranked))
