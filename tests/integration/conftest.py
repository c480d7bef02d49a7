"""
Shared fixtures for integration tests.

Integration tests run the real application against file-backed storage
in a temporary directory. Only the model loader is replaced, by a
deterministic encoder, since model weights are not available in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import yaml
from fastapi.testclient import TestClient

from snippet_vault.app import create_app
from snippet_vault.config import clear_settings_cache
from snippet_vault.core.state import reset_app_state
from tests.factories import VALID_CONFIG, FakeEncoder

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

EMBEDDING_DIMENSION = 384


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary service root holding config.yaml and the data files."""
    config = yaml.safe_load(VALID_CONFIG)
    config["storage"]["domains"]["sync"]["quota_bytes"] = 2048
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config))
    monkeypatch.setenv("CONFIG_PATH", str(config_path))
    return tmp_path


@pytest.fixture
def encoder() -> FakeEncoder:
    return FakeEncoder(dimension=EMBEDDING_DIMENSION)


@pytest.fixture
def start_client(data_dir: Path, encoder: FakeEncoder) -> Callable[[], TestClient]:
    """
    Factory for clients over the same data directory.

    Each call builds a fresh app, so entering a second client simulates
    a service restart.
    """

    def start() -> TestClient:
        clear_settings_cache()
        reset_app_state()
        return TestClient(create_app(), raise_server_exceptions=False)

    return start


@pytest.fixture
def client(start_client: Callable[[], TestClient], encoder: FakeEncoder) -> Iterator[TestClient]:
    """A running service over an empty data directory."""
    with (
        patch("snippet_vault.core.lifespan.create_model_loader", return_value=lambda: encoder),
        start_client() as test_client,
    ):
        yield test_client
