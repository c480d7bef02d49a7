"""
Search endpoints.

Searches run over every domain. Each search gets a token; a response for
a token that was overtaken by a newer search or a vault change comes back
as ``superseded`` with no results.
"""

from __future__ import annotations

from fastapi import APIRouter

from snippet_vault.routers.snippets import get_vault
from snippet_vault.schemas import SearchHit, SearchRequest, SearchResponse, SearchViewResponse

router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def run_search(request: SearchRequest) -> SearchResponse:
    """
    Rank every snippet against a query.

    Failures are reported with ``status: failed`` and the previously
    displayed results, not as an HTTP error.
    """
    vault = get_vault()
    outcome = await vault.search(request.query)
    return SearchResponse(
        token=outcome.token,
        status=outcome.status,
        query=outcome.query,
        results=[SearchHit.from_ranked(r) for r in outcome.results],
        message=outcome.message,
    )


@router.get("/search", response_model=SearchViewResponse)
async def get_search_view() -> SearchViewResponse:
    """Get the currently displayed search state."""
    view = get_vault().search_view()
    return SearchViewResponse(
        token=view.token,
        phase=view.phase,
        query=view.query,
        results=[SearchHit.from_ranked(r) for r in view.results],
        message=view.message,
    )
