"""
Shared test configuration and fixtures.

This file contains pytest configuration that applies to all tests,
both unit and integration. Test-type-specific fixtures are defined
in their respective conftest.py files:
- tests/unit/conftest.py - In-memory fixtures for unit tests
- tests/integration/conftest.py - File-backed app fixtures for integration tests
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from snippet_vault.config import clear_settings_cache
from snippet_vault.core.state import reset_app_state

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def reset_global_state() -> Iterator[None]:
    """Clear cached settings and app state around every test."""
    clear_settings_cache()
    reset_app_state()
    yield
    clear_settings_cache()
    reset_app_state()
