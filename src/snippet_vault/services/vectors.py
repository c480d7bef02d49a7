"""
Embedding vector validation and cosine similarity.

Vectors are held as read-only 1D float32 numpy arrays. Every vector that
enters the cache or the ranking path goes through ``as_vector`` first.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from snippet_vault.core.exceptions import InvalidVectorError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    Vector = NDArray[np.float32]


def as_vector(values: Sequence[float] | np.ndarray) -> Vector:
    """
    Validate and convert raw values to an embedding vector.

    Args:
        values: Sequence of numbers or numpy array

    Returns:
        Read-only 1D float32 array

    Raises:
        InvalidVectorError: If the input is not a non-empty 1D sequence
            of finite numbers
    """
    if isinstance(values, (str, bytes)):
        raise InvalidVectorError("expected a numeric sequence, got text")

    try:
        arr = np.asarray(values, dtype=np.float32)
    except (ValueError, TypeError) as e:
        raise InvalidVectorError(f"cannot convert to float array: {e}") from e

    if arr.ndim != 1:
        raise InvalidVectorError(
            f"expected a 1D vector, got shape {arr.shape}",
            {"shape": list(arr.shape)},
        )
    if arr.size == 0:
        raise InvalidVectorError("vector is empty")
    if not np.isfinite(arr).all():
        raise InvalidVectorError("vector contains NaN or infinite values")

    if arr is values:
        arr = arr.copy()
    arr.setflags(write=False)
    return arr


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """
    Compute cosine similarity between two vectors.

    Zero vectors carry no direction and are rejected instead of scoring 0.

    Returns:
        Similarity in [-1, 1]

    Raises:
        InvalidVectorError: If lengths differ, a component is not finite,
            or either vector has zero norm
    """
    va = as_vector(a)
    vb = as_vector(b)

    if va.shape != vb.shape:
        raise InvalidVectorError(
            "vectors must have equal length",
            {"left_dimension": int(va.size), "right_dimension": int(vb.size)},
        )

    # float64 accumulation keeps ~1.0 self-similarity stable for float32 input
    a64 = va.astype(np.float64)
    b64 = vb.astype(np.float64)
    norm_a = float(np.linalg.norm(a64))
    norm_b = float(np.linalg.norm(b64))
    if norm_a == 0.0 or norm_b == 0.0:
        raise InvalidVectorError("vectors must have non-zero norm")

    similarity = float(np.dot(a64, b64) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))
