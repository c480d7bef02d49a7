"""
Snippet Vault - semantic search over saved text snippets.

Stores text snippets in two storage domains (local and synced), caches
one sentence embedding per snippet, and ranks every snippet by cosine
similarity to a free-text query.

API Endpoints:
    GET /health - Service health check
    GET /info - Service configuration and metadata
    POST /embed - Embed a snippet text
    POST /embed/query - Embed a search query
    GET /snippets - List snippets
    POST /snippets - Create a snippet
    POST /snippets/{id}/move - Move a snippet between domains
    DELETE /snippets/{id} - Delete a snippet
    DELETE /snippets - Clear a domain
    POST /search - Run a search
    GET /search - Current search view
"""

__version__ = "0.1.0"
