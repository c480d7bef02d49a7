"""
Local sentence embedding model.

Loads a sentence-transformers style checkpoint from a local directory with
transformers and torch, and turns text into a mean-pooled, L2-normalized
vector. Nothing is downloaded at runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import torch
import torch.nn.functional as F
from transformers import AutoModel, AutoTokenizer

from snippet_vault.core.exceptions import EmbedderUnavailableError
from snippet_vault.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

REQUIRED_MODEL_FILES: tuple[str, ...] = (
    "config.json",
    "tokenizer.json",
    "tokenizer_config.json",
    "special_tokens_map.json",
)

# At least one of these must be present
WEIGHT_FILES: tuple[str, ...] = (
    "model.safetensors",
    "pytorch_model.bin",
)


def get_device(device_config: str) -> torch.device:
    """
    Resolve device from config string.

    Args:
        device_config: One of "auto", "cpu", "cuda", "mps"

    Returns:
        Resolved torch device
    """
    if device_config == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        elif torch.backends.mps.is_available():
            return torch.device("mps")
        else:
            return torch.device("cpu")
    return torch.device(device_config)


def ensure_model_assets(model_path: Path) -> None:
    """
    Check that every asset needed to load the model exists locally.

    Raises:
        EmbedderUnavailableError: If the directory or any asset is missing
    """
    if not model_path.is_dir():
        raise EmbedderUnavailableError(
            f"Model directory not found: {model_path}",
            {"model_path": str(model_path)},
        )

    for file_name in REQUIRED_MODEL_FILES:
        if not (model_path / file_name).is_file():
            raise EmbedderUnavailableError(
                f"Missing local model asset: {file_name}",
                {"model_path": str(model_path), "asset": file_name},
            )

    if not any((model_path / file_name).is_file() for file_name in WEIGHT_FILES):
        raise EmbedderUnavailableError(
            "Missing local model weights",
            {"model_path": str(model_path), "expected_any_of": list(WEIGHT_FILES)},
        )


def mean_pool(last_hidden_state: torch.Tensor, attention_mask: torch.Tensor) -> torch.Tensor:
    """Average token embeddings, ignoring padding positions."""
    mask = attention_mask.unsqueeze(-1).to(last_hidden_state.dtype)
    summed = (last_hidden_state * mask).sum(dim=1)
    counts = mask.sum(dim=1).clamp(min=1e-9)
    return summed / counts


class SentenceEmbeddingModel:
    """
    Text encoder backed by a local transformers checkpoint.

    ``encode`` is blocking; callers run it off the event loop.
    """

    def __init__(self, model: Any, tokenizer: Any, device: torch.device) -> None:
        self.model = model
        self.tokenizer = tokenizer
        self.device = device

    @classmethod
    def load(cls, model_path: Path, device_config: str) -> SentenceEmbeddingModel:
        """
        Load tokenizer and model from a local directory.

        Raises:
            EmbedderUnavailableError: If assets are missing or cannot be loaded
        """
        logger = get_logger(__name__)
        ensure_model_assets(model_path)
        device = get_device(device_config)

        logger.info(
            "Loading embedding model",
            extra={"model_path": str(model_path), "device": str(device)},
        )

        try:
            tokenizer = AutoTokenizer.from_pretrained(  # nosec B615
                str(model_path),
                local_files_only=True,
            )
            model = AutoModel.from_pretrained(  # nosec B615
                str(model_path),
                local_files_only=True,
            )
        except (OSError, ValueError) as e:
            raise EmbedderUnavailableError(
                f"Failed to load embedding model: {e}",
                {"model_path": str(model_path)},
            ) from e

        model = model.to(device)
        model.eval()

        return cls(model=model, tokenizer=tokenizer, device=device)

    @property
    def dimension(self) -> int:
        """Output embedding dimension."""
        return int(self.model.config.hidden_size)

    @torch.no_grad()
    def encode(self, text: str) -> list[float]:
        """
        Embed one text.

        Returns:
            L2-normalized embedding as a list of floats
        """
        inputs = self.tokenizer(
            text,
            padding=True,
            truncation=True,
            return_tensors="pt",
        )
        inputs = {key: value.to(self.device) for key, value in inputs.items()}

        outputs = self.model(**inputs)
        pooled = mean_pool(outputs.last_hidden_state, inputs["attention_mask"])

        # L2 normalize so cosine similarity is a plain dot product
        normalized = F.normalize(pooled, p=2, dim=1)

        return normalized.squeeze(0).cpu().float().tolist()
