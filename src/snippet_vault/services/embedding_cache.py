"""
Snippet id to embedding vector cache.

The cache is keyed by snippet id only, so moving a snippet between domains
keeps its vector. It is loaded once per session from its own storage area
and written back whenever it changes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from snippet_vault.core.exceptions import (
    InvalidInputError,
    InvalidVectorError,
    MissingEmbeddingError,
    ServiceError,
    StorageDecodeError,
    StorageFailureError,
)
from snippet_vault.logging import get_logger
from snippet_vault.services.vectors import as_vector

if TYPE_CHECKING:
    from collections.abc import AbstractSet, Callable, Iterator, Sequence

    from snippet_vault.services.embedder_client import Embedder
    from snippet_vault.services.kv_store import KeyValueStore
    from snippet_vault.services.vectors import Vector

EMBEDDINGS_KEY = "snippet_embeddings_v1"


@dataclass(frozen=True)
class EmbeddingSource:
    """Id and text of a snippet whose vector should be cached."""

    id: str
    text: str


class EmbeddingCache:
    """
    In-memory embedding cache backed by a key/value store.

    Every vector has the same dimension: the configured one, or the
    dimension of the first vector stored when none is configured.
    """

    def __init__(
        self,
        store: KeyValueStore,
        dimension: int | None = None,
        key: str = EMBEDDINGS_KEY,
    ) -> None:
        if dimension is not None and dimension <= 0:
            raise ValueError(f"Dimension must be positive, got {dimension}")
        self._store = store
        self._key = key
        self._dimension = dimension
        self._vectors: dict[str, Vector] = {}
        self._pending: dict[str, asyncio.Future[None]] = {}
        self._dirty = False

    @property
    def dimension(self) -> int | None:
        """Vector dimension, or None while unknown."""
        return self._dimension

    @property
    def dirty(self) -> bool:
        """Check whether in-memory changes have not been flushed yet."""
        return self._dirty

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._vectors

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._vectors))

    def ids(self) -> set[str]:
        """Get every cached snippet id."""
        return set(self._vectors)

    def _checked(self, item_id: str, values: Any) -> Vector:
        try:
            vector = as_vector(values)
        except InvalidVectorError as e:
            raise InvalidVectorError(e.reason, {"snippet_id": item_id}) from e

        if self._dimension is None:
            self._dimension = int(vector.size)
        elif vector.size != self._dimension:
            raise InvalidVectorError(
                f"dimension {vector.size} does not match cache dimension {self._dimension}",
                {"snippet_id": item_id, "expected": self._dimension, "received": int(vector.size)},
            )
        return vector

    async def load(self) -> int:
        """
        Load cached vectors from storage, replacing the in-memory state.

        Returns:
            Number of vectors loaded

        Raises:
            StorageDecodeError: If the stored value is not an id to vector mapping
            InvalidVectorError: If a stored vector is malformed or has the
                wrong dimension
            StorageFailureError: If the read fails
        """
        result = await self._store.get([self._key])
        stored = result.get(self._key)  # nosemgrep: no-dict-get-with-default
        if stored is None:
            stored = {}
        if not isinstance(stored, dict):
            raise StorageDecodeError(
                "Embeddings storage must be an object.",
                {"key": self._key, "type": type(stored).__name__},
            )

        self._vectors = {}
        for item_id, values in stored.items():
            self._vectors[str(item_id)] = self._checked(str(item_id), values)
        self._dirty = False

        get_logger(__name__).info(
            "Embedding cache loaded",
            extra={"count": len(self._vectors), "dimension": self._dimension},
        )
        return len(self._vectors)

    async def flush(self) -> None:
        """
        Write the in-memory cache to storage.

        A failed write is raised; the in-memory state is kept and stays dirty.
        """
        payload = {item_id: vector.tolist() for item_id, vector in self._vectors.items()}
        await self._store.set({self._key: payload})
        self._dirty = False
        get_logger(__name__).debug("Embedding cache flushed", extra={"count": len(payload)})

    def get(self, item_id: str) -> Vector:
        """
        Get the cached vector for a snippet. Never computes anything.

        Raises:
            MissingEmbeddingError: If no vector is cached for the id
        """
        vector = self._vectors.get(item_id)  # nosemgrep: no-dict-get-with-default
        if vector is None:
            raise MissingEmbeddingError(item_id)
        return vector

    def put(self, item_id: str, values: Sequence[float] | Vector) -> Vector:
        """
        Store a vector in memory and mark the cache dirty.

        Raises:
            InvalidVectorError: If the vector is malformed or has the wrong dimension
        """
        vector = self._checked(item_id, values)
        self._vectors[item_id] = vector
        self._dirty = True
        return vector

    async def ensure_all(
        self,
        items: Sequence[EmbeddingSource],
        embedder: Embedder,
        is_live: Callable[[str], bool] | None = None,
    ) -> int:
        """
        Compute and cache vectors for every item that has none.

        Items are filled one at a time in the order given. An id that is
        already being computed by another ``ensure_all`` call is awaited
        instead of computed twice. The cache is flushed afterwards if
        anything changed, also when a later item fails.

        Args:
            items: Snippet ids and texts to cover
            embedder: Computes missing vectors
            is_live: Optional check whether an id still exists; vectors for
                ids deleted meanwhile are not stored

        Returns:
            Number of vectors computed by this call

        Raises:
            InvalidInputError: If an item has an empty id or text
            EmbedderUnavailableError: If the embedder cannot be loaded
            EmbeddingFailedError: If computing a vector fails
            InvalidVectorError: If the embedder returns a vector of the wrong dimension
            StorageFailureError: If flushing fails
        """
        for item in items:
            if not isinstance(item.id, str) or not item.id:
                raise InvalidInputError("Embedding item requires an id.")
            if not isinstance(item.text, str) or not item.text.strip():
                raise InvalidInputError(
                    "Embedding item requires text.",
                    {"snippet_id": item.id},
                )

        logger = get_logger(__name__)
        updated = 0

        try:
            for item in items:
                if await self._fill(item, embedder, is_live):
                    updated += 1
        except ServiceError as e:
            if self._dirty:
                try:
                    await self.flush()
                except StorageFailureError as flush_error:
                    logger.warning(
                        "Embedding cache flush after failed fill also failed",
                        extra={"error_code": e.error, "flush_error": flush_error.message},
                    )
            raise

        if self._dirty:
            await self.flush()

        if updated:
            logger.info(
                "Embeddings computed",
                extra={"updated": updated, "requested": len(items), "cached": len(self._vectors)},
            )
        return updated

    async def _fill(
        self,
        item: EmbeddingSource,
        embedder: Embedder,
        is_live: Callable[[str], bool] | None,
    ) -> bool:
        """Compute one missing vector. Returns True if this call computed it."""
        while item.id not in self._vectors:
            if is_live is not None and not is_live(item.id):
                return False

            pending = self._pending.get(item.id)  # nosemgrep: no-dict-get-with-default
            if pending is not None:
                await pending
                continue

            marker: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._pending[item.id] = marker
            try:
                vector = await embedder.embed(item.text)
                if is_live is not None and not is_live(item.id):
                    get_logger(__name__).debug(
                        "Dropping vector of deleted snippet",
                        extra={"snippet_id": item.id},
                    )
                    return False
                self.put(item.id, vector)
                return True
            finally:
                del self._pending[item.id]
                marker.set_result(None)
        return False

    def prune(self, live_ids: AbstractSet[str]) -> bool:
        """
        Drop every cached vector whose id is not live.

        Returns:
            True if anything was removed, so the caller can skip an unneeded flush
        """
        orphans = [item_id for item_id in self._vectors if item_id not in live_ids]
        for item_id in orphans:
            del self._vectors[item_id]

        if orphans:
            self._dirty = True
            get_logger(__name__).info("Embedding cache pruned", extra={"removed": len(orphans)})
        return bool(orphans)

    def delete(self, item_id: str) -> bool:
        """
        Drop the cached vector for one snippet.

        Returns:
            True if a vector was removed
        """
        if item_id not in self._vectors:
            return False
        del self._vectors[item_id]
        self._dirty = True
        return True
