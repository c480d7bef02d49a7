"""
Snippet endpoints.

List, create, move and delete snippets in the local and synced domains.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Response

from snippet_vault.core.exceptions import ServiceError
from snippet_vault.core.state import get_app_state
from snippet_vault.schemas import (
    CreateSnippetRequest,
    DeleteAllResponse,
    ErrorResponse,
    MoveSnippetRequest,
    SnippetListResponse,
    SnippetResponse,
)

if TYPE_CHECKING:
    from snippet_vault.services.vault import SnippetVault

router = APIRouter()

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_vault() -> SnippetVault:
    """Get the loaded vault or raise a service error."""
    state = get_app_state()
    vault = state.vault
    if vault is None or not vault.is_loaded:
        raise ServiceError(
            error="service_unavailable",
            message="Snippet vault is not loaded",
            status_code=503,
            details={},
        )
    return vault


@router.get("/snippets", response_model=SnippetListResponse, responses=_ERRORS)
async def list_snippets(domain: str | None = None) -> SnippetListResponse:
    """List the snippets of one domain, or of every domain in fixed order."""
    vault = get_vault()
    snippets = vault.all_items() if domain is None else vault.list_items(domain)
    return SnippetListResponse(
        snippets=[SnippetResponse.from_snippet(s) for s in snippets],
        count=len(snippets),
    )


@router.post(
    "/snippets",
    response_model=SnippetResponse,
    status_code=201,
    responses=_ERRORS,
)
async def create_snippet(request: CreateSnippetRequest) -> SnippetResponse:
    """Embed and store a new snippet. Nothing is stored if embedding fails."""
    vault = get_vault()
    snippet = await vault.create_item(request.text, request.domain, request.source_url)
    return SnippetResponse.from_snippet(snippet)


@router.post("/snippets/{snippet_id}/move", response_model=SnippetResponse, responses=_ERRORS)
async def move_snippet(snippet_id: str, request: MoveSnippetRequest) -> SnippetResponse:
    """Move a snippet to the other domain. Its embedding is kept."""
    vault = get_vault()
    moved = await vault.move_item(snippet_id, request.from_domain, request.to_domain)
    return SnippetResponse.from_snippet(moved)


@router.delete("/snippets/{snippet_id}", status_code=204, responses=_ERRORS)
async def delete_snippet(snippet_id: str, domain: str) -> Response:
    """Delete a single snippet."""
    vault = get_vault()
    await vault.delete_item(domain, snippet_id)
    return Response(status_code=204)


@router.delete("/snippets", response_model=DeleteAllResponse, responses=_ERRORS)
async def clear_snippets(domain: str) -> DeleteAllResponse:
    """Delete every snippet in a domain."""
    vault = get_vault()
    count = await vault.clear_domain(domain)
    return DeleteAllResponse(domain=domain, deleted_count=count)
