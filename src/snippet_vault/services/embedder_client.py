"""
Async boundary to the text embedding model.

The model is expensive to load, so loading happens lazily on the first
call and is shared: concurrent callers await the same attempt. A failed
attempt is reported to every waiting caller and the next call starts a
fresh one.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from snippet_vault.core.exceptions import (
    EmbedderUnavailableError,
    EmbeddingFailedError,
    InvalidInputError,
    InvalidVectorError,
    ServiceError,
)
from snippet_vault.logging import get_logger
from snippet_vault.services.vectors import as_vector

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from snippet_vault.services.vectors import Vector


class TextEncoder(Protocol):
    """Blocking text to vector function, e.g. ``SentenceEmbeddingModel``."""

    def encode(self, text: str) -> Sequence[float]: ...


class Embedder(Protocol):
    """Anything that can asynchronously embed a text."""

    async def embed(self, text: str) -> Vector: ...


def validate_embed_text(text: str) -> str:
    """
    Check that text is non-empty after trimming.

    Raises:
        InvalidInputError: If the text is empty or whitespace only
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Text is required for embedding.")
    return text


class EmbedderClient:
    """
    Client for the local embedding model.

    Attributes:
        init_attempts: Number of model load attempts started so far
    """

    def __init__(
        self,
        loader: Callable[[], TextEncoder],
        dimension: int | None = None,
    ) -> None:
        """
        Args:
            loader: Blocking function that loads the encoder; run in a worker thread
            dimension: Expected output dimension, or None to accept any
        """
        self._loader = loader
        self._dimension = dimension
        self._encoder: TextEncoder | None = None
        self._init_task: asyncio.Task[TextEncoder] | None = None
        self.init_attempts = 0

    @property
    def is_initialized(self) -> bool:
        """Check whether the encoder has been loaded."""
        return self._encoder is not None

    async def _initialize(self) -> TextEncoder:
        logger = get_logger(__name__)
        self.init_attempts += 1
        logger.info("Initializing embedder", extra={"attempt": self.init_attempts})

        try:
            encoder = await asyncio.to_thread(self._loader)
        except EmbedderUnavailableError:
            logger.exception("Embedder initialization failed")
            raise
        except Exception as e:
            logger.exception("Embedder initialization failed")
            raise EmbedderUnavailableError(f"Embedder initialization failed: {e}") from e

        self._encoder = encoder
        logger.info("Embedder ready")
        return encoder

    async def _get_encoder(self) -> TextEncoder:
        if self._encoder is not None:
            return self._encoder

        task = self._init_task
        if task is None:
            task = asyncio.create_task(self._initialize())
            self._init_task = task

        try:
            # shield: a cancelled caller must not cancel the shared attempt
            return await asyncio.shield(task)
        except EmbedderUnavailableError:
            if self._init_task is task:
                self._init_task = None
            raise

    async def embed(self, text: str) -> Vector:
        """
        Embed a snippet text.

        Args:
            text: Text to embed; must be non-empty after trimming

        Returns:
            Embedding vector

        Raises:
            InvalidInputError: If text is empty
            EmbedderUnavailableError: If the model cannot be loaded
            EmbeddingFailedError: If computing the vector fails
        """
        validate_embed_text(text)
        encoder = await self._get_encoder()
        logger = get_logger(__name__)

        try:
            raw = await asyncio.to_thread(encoder.encode, text)
        except ServiceError:
            raise
        except Exception as e:
            logger.warning(
                "Embedding computation failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise EmbeddingFailedError(f"Embedding failed: {e}") from e

        try:
            vector = as_vector(raw)
        except InvalidVectorError as e:
            logger.warning("Embedding output is invalid", extra={"reason": e.reason})
            raise EmbeddingFailedError(
                f"Embedding output is invalid: {e.reason}",
                {"reason": e.reason},
            ) from e

        if self._dimension is not None and vector.size != self._dimension:
            logger.warning(
                "Embedding dimension mismatch",
                extra={"expected": self._dimension, "received": int(vector.size)},
            )
            raise EmbeddingFailedError(
                f"Embedding dimension {vector.size} does not match expected {self._dimension}",
                {"expected": self._dimension, "received": int(vector.size)},
            )

        return vector

    async def embed_query(self, text: str) -> Vector:
        """Embed a search query. Same contract as ``embed``."""
        return await self.embed(text)
