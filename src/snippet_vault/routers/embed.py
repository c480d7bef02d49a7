"""
Embedding endpoints.

Answer in the ``{ok, vector}`` / ``{ok, error}`` shape instead of HTTP
errors, so callers handle every outcome the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from snippet_vault.core.exceptions import ServiceError
from snippet_vault.core.state import get_app_state
from snippet_vault.logging import get_logger
from snippet_vault.schemas import EmbedFailure, EmbedRequest, EmbedResult, EmbedSuccess

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from snippet_vault.services.vectors import Vector

router = APIRouter()


async def _run(embed: Callable[[str], Awaitable[Vector]], text: str) -> EmbedResult:
    logger = get_logger(__name__)
    try:
        vector = await embed(text)
    except ServiceError as e:
        logger.info(
            "Embedding request failed",
            extra={"error_code": e.error, "error_message": e.message},
        )
        return EmbedFailure(error=e.message)
    return EmbedSuccess(vector=vector.tolist())


def _embedder_unavailable() -> EmbedFailure:
    return EmbedFailure(error="Embedder is not initialized.")


@router.post("/embed", response_model=EmbedResult)
async def embed_text(request: EmbedRequest) -> EmbedResult:
    """
    Embed a snippet text.

    Returns:
        ``{ok: true, vector}`` or ``{ok: false, error}``
    """
    embedder = get_app_state().embedder
    if embedder is None:
        return _embedder_unavailable()
    return await _run(embedder.embed, request.text)


@router.post("/embed/query", response_model=EmbedResult)
async def embed_query(request: EmbedRequest) -> EmbedResult:
    """
    Embed a search query.

    Returns:
        ``{ok: true, vector}`` or ``{ok: false, error}``
    """
    embedder = get_app_state().embedder
    if embedder is None:
        return _embedder_unavailable()
    return await _run(embedder.embed_query, request.text)
