"""
Similarity ranking of snippets against a query vector.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from snippet_vault.services.vectors import cosine_similarity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from snippet_vault.services.embedding_cache import EmbeddingCache
    from snippet_vault.services.item_store import Snippet
    from snippet_vault.services.vectors import Vector


@dataclass(frozen=True)
class RankedSnippet:
    """A snippet with its similarity score. Score is None for unranked listings."""

    snippet: Snippet
    score: float | None


def rank(
    query_vector: Vector,
    snippets: Sequence[Snippet],
    cache: EmbeddingCache,
) -> list[RankedSnippet]:
    """
    Score snippets by cosine similarity to the query and sort best first.

    Ties keep their input order. Every snippet must already have a cached
    vector; a missing one is an error, never a silent skip.

    Raises:
        MissingEmbeddingError: If a snippet has no cached vector
        InvalidVectorError: If the query and a cached vector differ in
            dimension or either has zero norm
    """
    scores = [cosine_similarity(query_vector, cache.get(snippet.id)) for snippet in snippets]

    # sorted() is stable, also with reverse=True
    order = sorted(range(len(snippets)), key=lambda i: scores[i], reverse=True)
    return [RankedSnippet(snippet=snippets[i], score=scores[i]) for i in order]
