"""Tests for the local sentence embedding model wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import pytest
import torch

from snippet_vault.core.exceptions import EmbedderUnavailableError
from snippet_vault.services.embedding_model import (
    REQUIRED_MODEL_FILES,
    SentenceEmbeddingModel,
    ensure_model_assets,
    get_device,
    mean_pool,
)

if TYPE_CHECKING:
    from pathlib import Path


def populate_model_dir(path: Path, weights: str | None = "model.safetensors") -> Path:
    path.mkdir(parents=True, exist_ok=True)
    for name in REQUIRED_MODEL_FILES:
        (path / name).write_text("{}")
    if weights is not None:
        (path / weights).write_bytes(b"\x00")
    return path


class FakeTokenizer:
    """Tokenizer returning a fixed two-token batch with one padding position."""

    def __call__(self, text: str, **_kwargs: Any) -> dict[str, torch.Tensor]:
        return {
            "input_ids": torch.tensor([[1, 2, 0]]),
            "attention_mask": torch.tensor([[1, 1, 0]]),
        }


class FakeTransformer:
    """Model whose token states are fixed, with a large value in the padded slot."""

    config = SimpleNamespace(hidden_size=2)

    def __call__(self, **_inputs: torch.Tensor) -> SimpleNamespace:
        hidden = torch.tensor([[[3.0, 0.0], [1.0, 0.0], [0.0, 100.0]]])
        return SimpleNamespace(last_hidden_state=hidden)


@pytest.mark.unit
class TestEnsureModelAssets:
    """Tests for the local asset check."""

    def test_complete_directory_passes(self, tmp_path: Path) -> None:
        """All assets present raises nothing."""
        ensure_model_assets(populate_model_dir(tmp_path / "model"))

    def test_legacy_weights_accepted(self, tmp_path: Path) -> None:
        """pytorch_model.bin is accepted in place of safetensors."""
        ensure_model_assets(populate_model_dir(tmp_path / "model", "pytorch_model.bin"))

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing directory raises EmbedderUnavailableError."""
        with pytest.raises(EmbedderUnavailableError, match="Model directory not found"):
            ensure_model_assets(tmp_path / "absent")

    def test_missing_tokenizer(self, tmp_path: Path) -> None:
        """A missing tokenizer file is named in the error."""
        model_dir = populate_model_dir(tmp_path / "model")
        (model_dir / "tokenizer.json").unlink()

        with pytest.raises(EmbedderUnavailableError, match="tokenizer.json") as exc_info:
            ensure_model_assets(model_dir)

        assert exc_info.value.status_code == 503

    def test_missing_weights(self, tmp_path: Path) -> None:
        """A directory without weights raises EmbedderUnavailableError."""
        model_dir = populate_model_dir(tmp_path / "model", weights=None)

        with pytest.raises(EmbedderUnavailableError, match="weights"):
            ensure_model_assets(model_dir)


@pytest.mark.unit
class TestPoolingAndDevice:
    """Tests for helpers."""

    def test_mean_pool_ignores_padding(self) -> None:
        """Padded positions do not contribute to the average."""
        hidden = torch.tensor([[[2.0, 4.0], [4.0, 8.0], [100.0, 100.0]]])
        mask = torch.tensor([[1, 1, 0]])

        pooled = mean_pool(hidden, mask)

        assert pooled.tolist() == [[3.0, 6.0]]

    def test_explicit_cpu_device(self) -> None:
        """An explicit device string is used as given."""
        assert get_device("cpu") == torch.device("cpu")


@pytest.mark.unit
class TestSentenceEmbeddingModel:
    """Tests for SentenceEmbeddingModel."""

    def test_encode_returns_normalized_mean(self) -> None:
        """Output is the L2-normalized mean of the unpadded token states."""
        model = SentenceEmbeddingModel(FakeTransformer(), FakeTokenizer(), torch.device("cpu"))

        vector = model.encode("hello")

        assert vector == pytest.approx([1.0, 0.0])
        assert model.dimension == 2

    def test_load_checks_assets_first(self, tmp_path: Path) -> None:
        """Loading from an incomplete directory never reaches transformers."""
        with (
            patch("snippet_vault.services.embedding_model.AutoTokenizer") as tokenizer_cls,
            pytest.raises(EmbedderUnavailableError),
        ):
            SentenceEmbeddingModel.load(tmp_path / "absent", "cpu")

        tokenizer_cls.from_pretrained.assert_not_called()

    def test_load_uses_local_files_only(self, tmp_path: Path) -> None:
        """Model and tokenizer are loaded without network access."""
        model_dir = populate_model_dir(tmp_path / "model")
        fake_model = MagicMock()
        fake_model.to.return_value = fake_model

        with (
            patch("snippet_vault.services.embedding_model.AutoTokenizer") as tokenizer_cls,
            patch("snippet_vault.services.embedding_model.AutoModel") as model_cls,
        ):
            model_cls.from_pretrained.return_value = fake_model
            loaded = SentenceEmbeddingModel.load(model_dir, "cpu")

        tokenizer_cls.from_pretrained.assert_called_once_with(str(model_dir), local_files_only=True)
        model_cls.from_pretrained.assert_called_once_with(str(model_dir), local_files_only=True)
        fake_model.eval.assert_called_once()
        assert loaded.device == torch.device("cpu")

    def test_load_error_becomes_unavailable(self, tmp_path: Path) -> None:
        """Unreadable checkpoints raise EmbedderUnavailableError."""
        model_dir = populate_model_dir(tmp_path / "model")

        with (
            patch("snippet_vault.services.embedding_model.AutoTokenizer") as tokenizer_cls,
            pytest.raises(EmbedderUnavailableError, match="Failed to load"),
        ):
            tokenizer_cls.from_pretrained.side_effect = OSError("corrupt")
            SentenceEmbeddingModel.load(model_dir, "cpu")
