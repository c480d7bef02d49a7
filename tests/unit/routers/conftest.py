"""
Fixtures for router tests.

The app is built with a test lifespan that wires an in-memory vault and an
embedder client around a deterministic encoder, so requests run through
the real services without model weights or files.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from snippet_vault.core.exceptions import EmbedderUnavailableError, register_exception_handlers
from snippet_vault.core.state import init_app_state
from snippet_vault.routers import embed, health, info, search, snippets
from snippet_vault.services.embedder_client import EmbedderClient
from tests.factories import VALID_CONFIG, FakeEncoder, make_vault

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator
    from pathlib import Path

    from snippet_vault.services.embedder_client import TextEncoder

VECTORS = {
    "alpha": [1.0, 0.0],
    "beta": [0.0, 1.0],
    "gamma": [0.9, 0.1],
    "query": [1.0, 0.0],
}


def build_app(loader: Callable[[], TextEncoder], with_vault: bool = True) -> FastAPI:
    """Create an app with all routers and a test lifespan."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        state = init_app_state()
        state.embedder = EmbedderClient(loader, dimension=2)
        if with_vault:
            vault = make_vault(state.embedder)  # type: ignore[arg-type]
            await vault.load()
            state.vault = vault
        yield

    app = FastAPI(lifespan=lifespan)
    register_exception_handlers(app)
    for module in (health, info, embed, snippets, search):
        app.include_router(module.router)
    return app


@pytest.fixture(autouse=True)
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point CONFIG_PATH at a valid configuration."""
    path = tmp_path / "config.yaml"
    path.write_text(VALID_CONFIG)
    monkeypatch.setenv("CONFIG_PATH", str(path))
    return path


@pytest.fixture
def encoder() -> FakeEncoder:
    return FakeEncoder(VECTORS, dimension=2)


@pytest.fixture
def client(encoder: FakeEncoder) -> Iterator[TestClient]:
    """Client for an app with a loaded, empty vault."""
    with TestClient(build_app(lambda: encoder), raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def unloaded_client(encoder: FakeEncoder) -> Iterator[TestClient]:
    """Client for an app whose vault was never loaded."""
    app = build_app(lambda: encoder, with_vault=False)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def missing_model() -> FakeEncoder:
    raise EmbedderUnavailableError("Missing local model asset: tokenizer.json")


@pytest.fixture
def broken_client() -> Iterator[TestClient]:
    """Client whose model cannot be loaded."""
    with TestClient(build_app(missing_model), raise_server_exceptions=False) as test_client:
        yield test_client
