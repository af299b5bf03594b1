"""Tests for model specification and the local backend."""

import numpy as np
import pytest

from semsearch.gateway.backend import (
    DEFAULT_MODEL,
    EMBEDDING_GEMMA,
    SEARCH_PREFIXES,
    LocalBackend,
    ModelSpec,
    TaskPrefixes,
    create_backend,
    get_model_spec,
)
from semsearch.gateway.types import LoadingProgress, LoadingStatus


class FakeSentenceTransformer:
    """Stand-in for a loaded sentence-transformers model."""

    def __init__(self, dimension: int = 4):
        self.dimension = dimension
        self.max_seq_length = 8192
        self.device = "cpu"
        self.encoded: list[list[str]] = []

    def get_sentence_embedding_dimension(self) -> int:
        return self.dimension

    def encode(self, texts, **kwargs):
        self.encoded.append(list(texts))
        assert kwargs["normalize_embeddings"] is True
        return np.ones((len(texts), self.dimension), dtype=np.float64) / 2.0


class FakeModelManager:
    """Records load requests instead of touching the Hub."""

    def __init__(self, model: FakeSentenceTransformer):
        self.model = model
        self.requests: list[dict] = []

    def load(self, model_name, device=None, dtype=None, progress_callback=None):
        self.requests.append({"model": model_name, "device": device, "dtype": dtype})
        if progress_callback is not None:
            progress_callback(LoadingProgress(status=LoadingStatus.READY, file=model_name, progress=100))
        return self.model


class TestTaskPrefixes:
    """Tests for the prefix contract."""

    @pytest.mark.unit
    def test_search_prefixes(self):
        assert SEARCH_PREFIXES.query == "task: search result | query: "
        assert SEARCH_PREFIXES.document == "title: none | text: "

    @pytest.mark.unit
    def test_apply(self):
        prefixes = TaskPrefixes(query="q: ", document="d: ")
        assert prefixes.for_query("sky") == "q: sky"
        assert prefixes.for_document("") == "d: "


class TestGetModelSpec:
    """Tests for get_model_spec helper."""

    @pytest.mark.unit
    def test_default_from_environment(self, monkeypatch):
        monkeypatch.delenv("EMBEDDING_MODEL_ID", raising=False)
        assert get_model_spec() is DEFAULT_MODEL
        assert DEFAULT_MODEL is EMBEDDING_GEMMA

    @pytest.mark.unit
    def test_from_spec(self):
        """Test passthrough of ModelSpec."""
        original = ModelSpec(name="custom", dimension=8, max_tokens=16, prefixes=SEARCH_PREFIXES)
        assert get_model_spec(original) is original

    @pytest.mark.unit
    def test_other_id_inherits_prefixes(self, monkeypatch):
        monkeypatch.setenv("EMBEDDING_MODEL_ID", "/mirror/embeddinggemma")
        spec = get_model_spec()
        assert spec.name == "/mirror/embeddinggemma"
        assert spec.prefixes == SEARCH_PREFIXES
        assert spec.dimension == EMBEDDING_GEMMA.dimension


class TestLocalBackend:
    """Tests for LocalBackend with a fake model manager."""

    @pytest.fixture
    def fake_model(self) -> FakeSentenceTransformer:
        return FakeSentenceTransformer(dimension=4)

    @pytest.fixture
    def backend(self, fake_model) -> LocalBackend:
        return LocalBackend(
            device="cpu",
            dtype="float32",
            model_manager=FakeModelManager(fake_model),
        )

    @pytest.mark.unit
    def test_name(self, backend):
        assert backend.name == f"local:{DEFAULT_MODEL.name}"

    @pytest.mark.unit
    def test_load_forwards_settings_and_progress(self, backend, fake_model):
        updates = []
        backend.load(progress_callback=updates.append)

        assert backend.is_loaded
        assert backend._model_manager.requests == [
            {"model": DEFAULT_MODEL.name, "device": "cpu", "dtype": "float32"}
        ]
        assert [u.status for u in updates] == [LoadingStatus.READY]
        assert fake_model.max_seq_length == DEFAULT_MODEL.max_tokens

    @pytest.mark.unit
    def test_load_is_idempotent(self, backend):
        backend.load()
        backend.load()
        assert len(backend._model_manager.requests) == 1

    @pytest.mark.unit
    def test_dimension_from_loaded_model(self, backend):
        assert backend.dimension == DEFAULT_MODEL.dimension
        backend.load()
        assert backend.dimension == 4

    @pytest.mark.unit
    def test_embed_texts_shape_and_dtype(self, backend, fake_model):
        backend.load()
        result = backend.embed_texts(["a", "b", "c"])
        assert result.shape == (3, 4)
        assert result.dtype == np.float32
        assert fake_model.encoded == [["a", "b", "c"]]

    @pytest.mark.unit
    def test_embed_empty(self, backend, fake_model):
        result = backend.embed_texts([])
        assert result.shape == (0, DEFAULT_MODEL.dimension)
        assert fake_model.encoded == []

    @pytest.mark.unit
    def test_embed_loads_lazily(self, backend):
        backend.embed_texts(["hello"])
        assert backend.is_loaded


class TestCreateBackend:
    """Tests for create_backend factory function."""

    @pytest.mark.unit
    def test_creates_local_backend(self, tmp_path):
        backend = create_backend(device="cpu", models_dir=tmp_path)
        assert isinstance(backend, LocalBackend)
        assert not backend.is_loaded

    @pytest.mark.unit
    def test_respects_model_argument(self, tmp_path):
        backend = create_backend("/models/gemma", models_dir=tmp_path)
        assert backend.spec.name == "/models/gemma"
