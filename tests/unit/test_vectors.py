"""Tests for vector validation and cosine similarity."""

from __future__ import annotations

import math

import numpy as np
import pytest

from snippet_vault.core.exceptions import InvalidVectorError
from snippet_vault.services.vectors import as_vector, cosine_similarity


@pytest.mark.unit
class TestAsVector:
    """Tests for as_vector."""

    def test_list_becomes_float32_array(self) -> None:
        """A list of numbers becomes a 1D float32 array."""
        vector = as_vector([1, 2, 3])

        assert vector.dtype == np.float32
        assert vector.tolist() == [1.0, 2.0, 3.0]

    def test_result_is_read_only(self) -> None:
        """Returned vectors cannot be modified in place."""
        vector = as_vector([1.0, 2.0])

        with pytest.raises(ValueError):
            vector[0] = 5.0

    def test_float32_input_is_copied(self) -> None:
        """Converting a float32 array does not freeze the caller's array."""
        source = np.array([1.0, 2.0], dtype=np.float32)

        vector = as_vector(source)
        source[0] = 9.0

        assert vector[0] == 1.0

    def test_empty_vector_rejected(self) -> None:
        """Empty input raises InvalidVectorError."""
        with pytest.raises(InvalidVectorError, match="empty"):
            as_vector([])

    def test_nested_input_rejected(self) -> None:
        """2D input raises InvalidVectorError."""
        with pytest.raises(InvalidVectorError, match="1D"):
            as_vector([[1.0, 2.0], [3.0, 4.0]])

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, bad: float) -> None:
        """NaN and infinite components raise InvalidVectorError."""
        with pytest.raises(InvalidVectorError, match="NaN or infinite"):
            as_vector([1.0, bad])

    def test_text_rejected(self) -> None:
        """Strings are not treated as sequences of numbers."""
        with pytest.raises(InvalidVectorError, match="text"):
            as_vector("1.0")

    def test_non_numeric_rejected(self) -> None:
        """Non-numeric components raise InvalidVectorError."""
        with pytest.raises(InvalidVectorError):
            as_vector(["a", "b"])


@pytest.mark.unit
class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors_score_one(self) -> None:
        """A vector is maximally similar to itself."""
        assert cosine_similarity([0.3, 0.4], [0.3, 0.4]) == pytest.approx(1.0)

    def test_orthogonal_vectors_score_zero(self) -> None:
        """Orthogonal vectors score 0."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors_score_minus_one(self) -> None:
        """Opposite vectors score -1."""
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_scale_does_not_matter(self) -> None:
        """Only direction affects the score."""
        assert cosine_similarity([1.0, 1.0], [10.0, 10.0]) == pytest.approx(1.0)

    def test_symmetric(self) -> None:
        """cos(a, b) equals cos(b, a)."""
        a = [0.9, 0.1, 0.3]
        b = [0.2, 0.7, 0.5]

        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_result_within_bounds(self) -> None:
        """Rounding never pushes the result outside [-1, 1]."""
        v = [0.1] * 384

        score = cosine_similarity(v, v)

        assert -1.0 <= score <= 1.0

    def test_zero_vector_rejected(self) -> None:
        """A zero-norm vector has no direction and is rejected."""
        with pytest.raises(InvalidVectorError, match="non-zero norm"):
            cosine_similarity([0.0, 0.0], [1.0, 0.0])

    def test_zero_query_rejected(self) -> None:
        """A zero-norm second vector is rejected too."""
        with pytest.raises(InvalidVectorError, match="non-zero norm"):
            cosine_similarity([1.0, 0.0], [0.0, 0.0])

    def test_length_mismatch_rejected(self) -> None:
        """Vectors of different lengths raise InvalidVectorError."""
        with pytest.raises(InvalidVectorError, match="equal length") as exc_info:
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

        assert exc_info.value.details == {"left_dimension": 2, "right_dimension": 3}

    def test_nan_rejected(self) -> None:
        """Non-finite input is rejected before scoring."""
        with pytest.raises(InvalidVectorError):
            cosine_similarity([math.nan, 1.0], [1.0, 1.0])
