"""
Core components for the snippet vault service.

Provides application lifecycle management, state tracking,
and exception handling.
"""

from snippet_vault.core.exceptions import ServiceError
from snippet_vault.core.state import AppState, get_app_state

__all__ = ["AppState", "ServiceError", "get_app_state"]
