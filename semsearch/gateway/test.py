"""Tests for gateway progress types and the mock backend contract."""

import numpy as np
import pytest
from pydantic import ValidationError

from semsearch.gateway import LoadingProgress, LoadingStatus


class TestLoadingProgress:
    """Tests for LoadingProgress validation and formatting."""

    @pytest.mark.unit
    def test_from_payload(self):
        progress = LoadingProgress.model_validate(
            {"status": "progress", "file": "model.safetensors", "progress": 37.6}
        )
        assert progress.status is LoadingStatus.PROGRESS
        assert progress.file == "model.safetensors"

    @pytest.mark.unit
    def test_progress_clamped(self):
        assert LoadingProgress(status="progress", progress=180).progress == 100.0
        assert LoadingProgress(status="progress", progress=-3).progress == 0.0
        assert LoadingProgress(status="initiate", progress=None).progress == 0.0

    @pytest.mark.unit
    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            LoadingProgress(status="exploding")

    @pytest.mark.unit
    def test_rounded_and_describe(self):
        progress = LoadingProgress(status="progress", file="gemma", progress=41.6).rounded()
        assert progress.progress == 42.0
        assert progress.describe() == "progress: gemma (42%)"

    @pytest.mark.unit
    @pytest.mark.parametrize("raw, expected", [(42.5, 43.0), (0.5, 1.0), (99.49, 99.0), (99.5, 100.0)])
    def test_rounded_halves_round_up(self, raw, expected):
        progress = LoadingProgress(status="progress", progress=raw)
        assert progress.rounded().progress == expected

    @pytest.mark.unit
    def test_frozen(self):
        progress = LoadingProgress(status="done")
        with pytest.raises(ValidationError):
            progress.progress = 5.0


class TestMockBackendContract:
    """The shared mock backend honours the gateway contract."""

    @pytest.mark.unit
    def test_one_row_per_input_in_order(self, mock_embedding_backend):
        texts = ["alpha beta", "gamma", "alpha beta"]
        result = mock_embedding_backend.embed_texts(texts)
        assert result.shape == (3, mock_embedding_backend.dimension)
        np.testing.assert_array_equal(result[0], result[2])

    @pytest.mark.unit
    def test_deterministic(self, mock_embedding_backend):
        first = mock_embedding_backend.embed_texts(["The sky is blue."])
        second = mock_embedding_backend.embed_texts(["The sky is blue."])
        np.testing.assert_array_equal(first, second)

    @pytest.mark.unit
    def test_unit_norm(self, mock_embedding_backend):
        result = mock_embedding_backend.embed_texts(["one two three"])
        assert np.linalg.norm(result[0]) == pytest.approx(1.0)
