"""Tests for embedding endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from fastapi.testclient import TestClient


@pytest.mark.unit
class TestEmbedEndpoint:
    """Tests for POST /embed and POST /embed/query."""

    def test_embed_returns_vector(self, client: TestClient) -> None:
        """A valid text returns ok with its vector."""
        response = client.post("/embed", json={"text": "alpha"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "vector": [1.0, 0.0]}

    def test_embed_query_returns_vector(self, client: TestClient) -> None:
        """Queries use the same model."""
        response = client.post("/embed/query", json={"text": "beta"})

        assert response.json() == {"ok": True, "vector": [0.0, 1.0]}

    @pytest.mark.parametrize("path", ["/embed", "/embed/query"])
    def test_blank_text_is_error_result(self, client: TestClient, path: str) -> None:
        """Blank text answers ok=false instead of an HTTP error."""
        response = client.post(path, json={"text": "   "})

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "Text is required for embedding."}

    def test_unavailable_model_is_error_result(self, broken_client: TestClient) -> None:
        """A model that cannot load answers ok=false with the reason."""
        response = broken_client.post("/embed", json={"text": "alpha"})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert "tokenizer.json" in data["error"]

    @pytest.mark.parametrize("path", ["/embed", "/embed/query"])
    @pytest.mark.parametrize("body", [{}, {"text": None}, {"text": 42}, {"text": ["alpha"]}])
    def test_missing_or_non_string_text_is_error_result(
        self, client: TestClient, path: str, body: dict[str, object]
    ) -> None:
        """Bodies without a usable text answer ok=false, not a validation error."""
        response = client.post(path, json=body)

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "Text is required for embedding."}
