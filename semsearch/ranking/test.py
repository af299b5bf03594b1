"""Tests for the ranking engine."""

import numpy as np
import pytest

from .lib import RankedDocument, rank, top_k


class TestRank:
    """Tests for rank()."""

    @pytest.mark.unit
    def test_sorted_by_score_descending(self):
        query = [1.0, 0.0]
        candidates = [[0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
        result = rank(query, candidates, ["ortho", "same", "diag"])

        assert [r.text for r in result] == ["same", "diag", "ortho"]
        assert [r.index for r in result] == [1, 2, 0]
        assert result[0].score == pytest.approx(1.0)
        assert result[1].score == pytest.approx(np.sqrt(0.5), abs=1e-6)
        assert result[2].score == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.unit
    def test_ties_keep_input_order(self):
        query = [1.0, 0.0]
        candidates = [[0.0, 1.0], [2.0, 0.0], [0.0, -1.0], [5.0, 0.0]]
        result = rank(query, candidates, ["a", "b", "c", "d"])

        assert [r.index for r in result] == [1, 3, 0, 2]

    @pytest.mark.unit
    def test_all_equal_scores_preserve_order(self):
        candidates = [[1.0, 0.0]] * 5
        result = rank([1.0, 0.0], candidates, list("abcde"))
        assert [r.index for r in result] == [0, 1, 2, 3, 4]

    @pytest.mark.unit
    def test_length_preserved_without_duplicates(self):
        rng = np.random.default_rng(11)
        candidates = rng.standard_normal((25, 16))
        texts = [f"doc {i}" for i in range(25)]
        result = rank(rng.standard_normal(16), candidates, texts)

        assert len(result) == 25
        assert sorted(r.index for r in result) == list(range(25))
        assert all(r.text == texts[r.index] for r in result)

    @pytest.mark.unit
    def test_deterministic(self):
        rng = np.random.default_rng(5)
        query = rng.standard_normal(16)
        candidates = rng.standard_normal((10, 16))
        texts = [str(i) for i in range(10)]

        assert rank(query, candidates, texts) == rank(query, candidates, texts)

    @pytest.mark.unit
    def test_scores_in_range_for_unnormalized_vectors(self):
        rng = np.random.default_rng(9)
        result = rank(
            rng.standard_normal(8) * 100,
            rng.standard_normal((6, 8)) * 30,
            list("abcdef"),
        )
        assert all(-1.0 <= r.score <= 1.0 for r in result)

    @pytest.mark.unit
    def test_empty_candidates(self):
        assert rank([1.0, 0.0], [], []) == []

    @pytest.mark.unit
    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="candidate vectors"):
            rank([1.0, 0.0], [[1.0, 0.0]], ["a", "b"])

    @pytest.mark.unit
    def test_result_is_immutable(self):
        (doc,) = rank([1.0], [[1.0]], ["only"])
        with pytest.raises(AttributeError):
            doc.score = 0.5  # type: ignore[misc]


class TestTopK:
    """Tests for top_k()."""

    @pytest.mark.unit
    def test_slices_best_entries(self):
        ranked = [RankedDocument(i, str(i), 1.0 - i / 10) for i in range(5)]
        assert top_k(ranked, 2) == ranked[:2]

    @pytest.mark.unit
    def test_non_positive_k(self):
        ranked = [RankedDocument(0, "a", 1.0)]
        assert top_k(ranked, 0) == []
