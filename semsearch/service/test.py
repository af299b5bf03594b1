"""Tests for the embedding service."""

import asyncio

import numpy as np
import pytest

from semsearch.gateway import LoadingStatus, SEARCH_PREFIXES
from semsearch.service import lib as service_lib

from .errors import EmbeddingError, InitializationError, NotReadyError
from .lib import EmbeddingService, get_embedding_service, get_instance
from .types import Failed, Loading, Ready, Unloaded


@pytest.fixture
def service(mock_embedding_backend) -> EmbeddingService:
    return EmbeddingService(mock_embedding_backend)


@pytest.fixture
async def ready_service(service) -> EmbeddingService:
    await service.load()
    return service


# =============================================================================
# Lifecycle
# =============================================================================


class TestLoad:
    """Tests for model initialization."""

    @pytest.mark.unit
    def test_starts_unloaded(self, service):
        assert isinstance(service.state, Unloaded)
        assert not service.is_ready

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_reaches_ready(self, service, mock_embedding_backend):
        result = await service.load()

        assert result is service
        assert service.state == Ready(dimension=mock_embedding_backend.dimension)
        assert service.is_ready

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_progress_delivered_in_order_while_loading(self, service):
        seen = []

        def on_progress(progress):
            seen.append((progress.status, type(service.state)))

        await service.load(on_progress)

        assert [status for status, _ in seen] == [
            LoadingStatus.INITIATE,
            LoadingStatus.PROGRESS,
            LoadingStatus.DONE,
        ]
        assert all(state is Loading for _, state in seen)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sequential_loads_initialize_once(self, service, mock_embedding_backend):
        await service.load()
        await service.load()
        assert mock_embedding_backend.load_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_loads_initialize_once(self, make_backend):
        backend = make_backend(delay=0.05)
        service = EmbeddingService(backend)

        first, second = await asyncio.gather(service.load(), service.load())

        assert first is second is service
        assert backend.load_count == 1
        assert service.is_ready

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_state_is_loading_immediately(self, make_backend):
        service = EmbeddingService(make_backend(delay=0.05))
        task = asyncio.create_task(service.load())
        await asyncio.sleep(0)
        assert isinstance(service.state, Loading)
        await task

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_sets_failed_state(self, make_backend):
        service = EmbeddingService(make_backend(fail_load=1))

        with pytest.raises(InitializationError) as excinfo:
            await service.load()

        assert isinstance(service.state, Failed)
        assert "model download failed" in service.state.reason
        assert isinstance(excinfo.value.__cause__, OSError)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retry_after_failure(self, make_backend):
        backend = make_backend(fail_load=1)
        service = EmbeddingService(backend)

        with pytest.raises(InitializationError):
            await service.load()
        await service.load()

        assert service.is_ready
        assert backend.load_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_failure(self, make_backend):
        backend = make_backend(fail_load=1, delay=0.05)
        service = EmbeddingService(backend)

        results = await asyncio.gather(service.load(), service.load(), return_exceptions=True)

        assert all(isinstance(r, InitializationError) for r in results)
        assert backend.load_count == 1


class TestGetInstance:
    """Tests for the process-wide accessor."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_same_instance_loaded_once(self, monkeypatch, mock_embedding_backend):
        monkeypatch.setattr(service_lib, "_default_service", None)
        get_embedding_service(mock_embedding_backend)

        first = await get_instance()
        second = await get_instance()

        assert first is second
        assert first.backend is mock_embedding_backend
        assert mock_embedding_backend.load_count == 1


# =============================================================================
# Embedding
# =============================================================================


class TestEmbed:
    """Tests for embed()."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_ready_has_no_side_effects(self, service, mock_embedding_backend):
        with pytest.raises(NotReadyError):
            await service.embed("query", ["doc"])

        assert mock_embedding_backend.calls == []
        assert isinstance(service.state, Unloaded)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_batched_call_with_prefixes(self, ready_service, mock_embedding_backend):
        await ready_service.embed("sky", ["blue", "green"])

        assert mock_embedding_backend.calls == [
            [
                SEARCH_PREFIXES.query + "sky",
                SEARCH_PREFIXES.document + "blue",
                SEARCH_PREFIXES.document + "green",
            ]
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_document_embeddings_follow_input_order(
        self, ready_service, mock_embedding_backend, sample_documents
    ):
        result = await ready_service.embed("anything", sample_documents)

        assert len(result.document_embeddings) == len(sample_documents)
        for doc, vector in zip(sample_documents, result.document_embeddings):
            expected = mock_embedding_backend.embed_texts([SEARCH_PREFIXES.document + doc])[0]
            np.testing.assert_allclose(vector, expected, rtol=1e-6)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_documents_skip_ranking(self, ready_service, mock_embedding_backend):
        result = await ready_service.embed("lonely query", [])

        assert result.ranked_documents == []
        assert result.document_embeddings == []
        assert len(result.query_embedding) == mock_embedding_backend.dimension
        assert mock_embedding_backend.calls == [[SEARCH_PREFIXES.query + "lonely query"]]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_documents_never_call_rank(self, ready_service, monkeypatch):
        def fail_rank(*args, **kwargs):
            raise AssertionError("rank must not be called without documents")

        monkeypatch.setattr(service_lib, "rank", fail_rank)

        result = await ready_service.embed("q", [])

        assert result.ranked_documents == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_value", [np.nan, np.inf])
    async def test_non_finite_output_raises_embedding_error(self, ready_service, monkeypatch, bad_value):
        monkeypatch.setattr(
            ready_service.backend,
            "embed_texts",
            lambda texts: np.full((len(texts), 256), bad_value, dtype=np.float32),
        )
        with pytest.raises(EmbeddingError, match="non-finite"):
            await ready_service.embed("q", ["a"])
        assert ready_service.is_ready

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sky_document_ranks_first(self, ready_service, sample_query, sample_documents):
        result = await ready_service.embed(sample_query, sample_documents)

        assert result.ranked_documents[0].text == "The sky is blue."
        assert result.ranked_documents[0].index == 0
        assert len(result.ranked_documents) == 3
        assert all(-1.0 <= doc.score <= 1.0 for doc in result.ranked_documents)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_embed_document(self, ready_service, mock_embedding_backend):
        vector = await ready_service.embed_document("Cats are mammals.")

        assert len(vector) == mock_embedding_backend.dimension
        assert mock_embedding_backend.calls[-1] == [
            SEARCH_PREFIXES.query,
            SEARCH_PREFIXES.document + "Cats are mammals.",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_backend_failure_raises_embedding_error(self, make_backend):
        backend = make_backend()
        service = EmbeddingService(backend)
        await service.load()
        backend.fail_embed = True

        with pytest.raises(EmbeddingError) as excinfo:
            await service.embed("q", ["d"])

        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert service.is_ready

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_output_raises_embedding_error(self, ready_service, monkeypatch):
        monkeypatch.setattr(
            ready_service.backend,
            "embed_texts",
            lambda texts: np.zeros((len(texts) - 1, 256), dtype=np.float32),
        )
        with pytest.raises(EmbeddingError, match="shape"):
            await ready_service.embed("q", ["a", "b"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requests_are_serialized(self, make_backend):
        backend = make_backend(delay=0.02)
        service = EmbeddingService(backend)
        await service.load()

        await asyncio.gather(*(service.embed(f"q{i}", [f"d{i}"]) for i in range(4)))

        assert len(backend.calls) == 4
        assert backend.max_concurrent == 1
