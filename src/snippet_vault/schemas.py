"""
Pydantic request/response models for the snippet vault API.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from snippet_vault.services.item_store import Snippet
    from snippet_vault.services.ranking import RankedSnippet

DomainName = Literal["local", "sync"]

# === Request Models ===


class EmbedRequest(BaseModel):
    """
    Request model for POST /embed and POST /embed/query.

    ``text`` is left untyped so that a missing or non-string value is
    answered with ``ok: false`` by the endpoint instead of a 422.
    """

    text: Any = None
    """Text to embed. Must be a non-empty string after trimming."""


class CreateSnippetRequest(BaseModel):
    """Request model for POST /snippets."""

    model_config = ConfigDict(extra="forbid")

    text: str
    """Snippet text, stored as given."""

    domain: str
    """Storage domain to append to ("local" or "sync")."""

    source_url: str | None = None
    """Page the text was captured from."""


class MoveSnippetRequest(BaseModel):
    """Request model for POST /snippets/{id}/move."""

    model_config = ConfigDict(extra="forbid")

    from_domain: str
    to_domain: str


class SearchRequest(BaseModel):
    """Request model for POST /search."""

    model_config = ConfigDict(extra="forbid")

    query: str
    """Free-text query. An empty query shows every snippet unranked."""


# === Response Models ===


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    """Service health status."""

    uptime_seconds: float
    """Uptime in seconds since service start."""

    uptime: str
    """Human-readable uptime (e.g., "2d 3h 15m 42s")."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""


class ModelInfo(BaseModel):
    """Model configuration info for /info endpoint."""

    model_config = ConfigDict(protected_namespaces=())

    name: str
    """Model identifier."""

    embedding_dimension: int
    """Output embedding vector dimension."""

    device: str
    """Compute device (cpu, cuda, mps), or the configured value before loading."""

    initialized: bool
    """Whether the model has been loaded."""


class StorageInfo(BaseModel):
    """Snippet and vector counts for /info endpoint."""

    counts: dict[str, int]
    """Number of snippets per domain."""

    cached_embeddings: int
    """Number of cached vectors."""


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    """Service name."""

    version: str
    """Service version (semver)."""

    model: ModelInfo
    """Model configuration."""

    storage: StorageInfo
    """Storage statistics."""


class EmbedSuccess(BaseModel):
    """Successful embedding result."""

    ok: Literal[True] = True
    vector: list[float]


class EmbedFailure(BaseModel):
    """Failed embedding result."""

    ok: Literal[False] = False
    error: str


EmbedResult = EmbedSuccess | EmbedFailure


class SnippetResponse(BaseModel):
    """A stored snippet."""

    id: str
    text: str
    domain: DomainName
    created_at: datetime | None
    source_url: str | None

    @classmethod
    def from_snippet(cls, snippet: Snippet) -> SnippetResponse:
        return cls(
            id=snippet.id,
            text=snippet.text,
            domain=snippet.domain,
            created_at=snippet.created_at,
            source_url=snippet.source_url,
        )


class SnippetListResponse(BaseModel):
    """Response model for GET /snippets."""

    snippets: list[SnippetResponse]
    count: int


class DeleteAllResponse(BaseModel):
    """Response model for DELETE /snippets."""

    domain: DomainName
    deleted_count: int


class SearchHit(BaseModel):
    """A snippet with its similarity score; score is null when unranked."""

    snippet: SnippetResponse
    score: float | None

    @classmethod
    def from_ranked(cls, ranked: RankedSnippet) -> SearchHit:
        return cls(snippet=SnippetResponse.from_snippet(ranked.snippet), score=ranked.score)


class SearchResponse(BaseModel):
    """Response model for POST /search."""

    token: int
    status: Literal["idle", "done", "failed", "superseded"]
    query: str
    results: list[SearchHit]
    message: str | None


class SearchViewResponse(BaseModel):
    """Response model for GET /search."""

    token: int
    phase: Literal["idle", "preparing", "ranking", "done", "failed"]
    query: str
    results: list[SearchHit]
    message: str | None


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    """Machine-readable error code."""

    message: str
    """Human-readable error description."""

    details: dict[str, Any] = Field(default_factory=dict)
    """Additional error context."""
