"""
API routers for the snippet vault service.

Each router handles a specific domain of endpoints.
"""

from snippet_vault.routers import embed, health, info, search, snippets

__all__ = ["embed", "health", "info", "search", "snippets"]
