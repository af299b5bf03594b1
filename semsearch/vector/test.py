"""Tests for vector math utilities."""

import numpy as np
import pytest

from .lib import (
    cosine_similarities,
    cosine_similarity,
    dot,
    normalize,
    normalize_rows,
)


class TestNormalize:
    """Tests for L2 normalization."""

    @pytest.mark.unit
    def test_unit_length(self):
        result = normalize([3.0, 4.0])
        assert np.linalg.norm(result) == pytest.approx(1.0)
        np.testing.assert_allclose(result, [0.6, 0.8], rtol=1e-6)

    @pytest.mark.unit
    def test_zero_vector_unchanged(self):
        result = normalize([0.0, 0.0, 0.0])
        assert not np.any(result)

    @pytest.mark.unit
    def test_rejects_matrix(self):
        with pytest.raises(ValueError, match="1-D"):
            normalize([[1.0, 0.0]])

    @pytest.mark.unit
    def test_normalize_rows_zero_safe(self):
        result = normalize_rows([[3.0, 4.0], [0.0, 0.0]])
        np.testing.assert_allclose(result[0], [0.6, 0.8], rtol=1e-6)
        assert not np.any(result[1])


class TestDot:
    """Tests for dot product."""

    @pytest.mark.unit
    def test_dot(self):
        assert dot([1.0, 2.0, 3.0], [4.0, 5.0, 6.0]) == pytest.approx(32.0)

    @pytest.mark.unit
    def test_dimension_mismatch(self):
        with pytest.raises(ValueError, match="dimensions must match"):
            dot([1.0, 2.0], [1.0, 2.0, 3.0])


class TestCosineSimilarity:
    """Tests for pairwise and one-to-many cosine similarity."""

    @pytest.mark.unit
    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)

    @pytest.mark.unit
    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    @pytest.mark.unit
    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    @pytest.mark.unit
    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    @pytest.mark.unit
    def test_unnormalized_inputs_stay_in_range(self):
        rng = np.random.default_rng(7)
        query = rng.standard_normal(32) * 50
        matrix = rng.standard_normal((20, 32)) * 10
        scores = cosine_similarities(query, matrix)
        assert scores.shape == (20,)
        assert np.all(scores <= 1.0) and np.all(scores >= -1.0)

    @pytest.mark.unit
    def test_matches_pairwise(self):
        rng = np.random.default_rng(3)
        query = rng.standard_normal(8)
        matrix = rng.standard_normal((4, 8))
        scores = cosine_similarities(query, matrix)
        for row, score in zip(matrix, scores):
            assert score == pytest.approx(cosine_similarity(query, row), abs=1e-5)

    @pytest.mark.unit
    def test_empty_candidates(self):
        assert cosine_similarities([1.0, 0.0], []).shape == (0,)

    @pytest.mark.unit
    def test_candidate_dimension_mismatch(self):
        with pytest.raises(ValueError, match="dimensions must match"):
            cosine_similarities([1.0, 0.0], [[1.0, 0.0, 0.0]])
