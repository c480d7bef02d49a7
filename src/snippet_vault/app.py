"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

from __future__ import annotations

from fastapi import FastAPI

from snippet_vault.config import get_settings
from snippet_vault.core.exceptions import register_exception_handlers
from snippet_vault.core.lifespan import lifespan
from snippet_vault.routers import embed, health, info, search, snippets


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    # Load settings (validates configuration)
    settings = get_settings()

    # Create app with lifespan management
    app = FastAPI(
        title=f"{settings.service.name} Service",
        version=settings.service.version,
        lifespan=lifespan,
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Register routers
    app.include_router(health.router, tags=["Operations"])
    app.include_router(info.router, tags=["Operations"])
    app.include_router(embed.router, tags=["Embeddings"])
    app.include_router(snippets.router, tags=["Snippets"])
    app.include_router(search.router, tags=["Search"])

    return app
