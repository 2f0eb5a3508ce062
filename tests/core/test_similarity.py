"""
Tests for cosine similarity.
"""

import math

import pytest

from rag_backend.core.similarity import cosine_similarity


class TestCosineSimilarity:
    """Test suite for cosine_similarity."""

    def test_identical_vectors_should_score_one(self) -> None:
        assert cosine_similarity([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == pytest.approx(1.0)

    def test_should_be_symmetric(self) -> None:
        a, b = [1.0, 2.0, 3.0], [-2.0, 0.5, 1.0]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_orthogonal_vectors_should_score_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)

    def test_opposite_vectors_should_score_minus_one(self) -> None:
        assert cosine_similarity([1.0, 1.0], [-2.0, -2.0]) == pytest.approx(-1.0)

    def test_should_ignore_magnitude(self) -> None:
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_known_angle(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector_should_score_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0

    def test_length_mismatch_should_raise(self) -> None:
        with pytest.raises(ValueError, match="Invalid vectors"):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_missing_vector_should_raise(self) -> None:
        with pytest.raises(ValueError):
            cosine_similarity(None, [1.0])
