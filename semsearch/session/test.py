"""Tests for the session controller and debouncer."""

import asyncio
import dataclasses
import logging

import numpy as np
import pytest

from semsearch.gateway import SEARCH_PREFIXES
from semsearch.service import EmbeddingService

from .debounce import Debouncer
from .lib import (
    ADD_FAILED_MESSAGE,
    COMPARE_FAILED_MESSAGE,
    LOAD_FAILED_MESSAGE,
    SessionActivity,
    SessionController,
    SessionPhase,
)


def make_session(backend, debounce_ms: int = 0) -> SessionController:
    return SessionController(EmbeddingService(backend), debounce_ms=debounce_ms)


@pytest.fixture
def session(mock_embedding_backend) -> SessionController:
    return make_session(mock_embedding_backend)


@pytest.fixture
async def ready_session(session) -> SessionController:
    await session.load_model()
    return session


# =============================================================================
# Debouncer
# =============================================================================


class TestDebouncer:
    """Tests for the debounce timer."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_only_last_action_runs(self):
        debouncer = Debouncer(0.01)
        ran = []

        async def record(value):
            ran.append(value)

        for value in ("a", "ab", "abc"):
            debouncer.schedule(lambda v=value: record(v))
        await debouncer.join()

        assert ran == ["abc"]
        assert not debouncer.pending

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancel_prevents_run(self):
        debouncer = Debouncer(0.01)
        ran = []

        async def record():
            ran.append(True)

        debouncer.schedule(record)
        debouncer.cancel()
        await debouncer.join()

        assert ran == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_epochs(self):
        debouncer = Debouncer(0.01)

        async def noop():
            pass

        first = debouncer.schedule(noop)
        second = debouncer.schedule(noop)

        assert second == first + 1
        assert debouncer.is_latest(second)
        assert not debouncer.is_latest(first)
        debouncer.cancel()
        assert not debouncer.is_latest(second)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_action_is_logged(self, caplog):
        debouncer = Debouncer(0)

        async def boom():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            debouncer.schedule(boom)
            await debouncer.join()
            await asyncio.sleep(0)

        assert "Debounced action failed" in caplog.text


# =============================================================================
# Model loading
# =============================================================================


class TestLoadModel:
    """Tests for load_model()."""

    @pytest.mark.unit
    def test_initial_state(self, session):
        assert session.phase is SessionPhase.NOT_LOADED
        assert session.activity is SessionActivity.IDLE
        assert session.documents == []
        assert session.document_embeddings == []
        assert session.query == ""
        assert session.query_embedding is None
        assert session.ranked_results == []
        assert session.loading_progress is None
        assert session.last_error is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_reaches_ready(self, session):
        await session.load_model()

        assert session.phase is SessionPhase.READY
        assert session.loading_progress is None
        assert session.last_error is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_progress_is_rounded_while_loading(self, session):
        seen = []
        session.subscribe(lambda s: seen.append((s.phase, s.loading_progress)))

        await session.load_model()

        percents = [p.progress for phase, p in seen if p is not None]
        assert 42.0 in percents
        assert all(phase is SessionPhase.LOADING for phase, p in seen if p is not None)
        assert seen[-1] == (SessionPhase.READY, None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_is_noop_while_loading_or_ready(self, make_backend):
        backend = make_backend(delay=0.05)
        session = make_session(backend)

        await asyncio.gather(session.load_model(), session.load_model())
        await session.load_model()

        assert backend.load_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_sets_message_and_allows_retry(self, make_backend):
        backend = make_backend(fail_load=1)
        session = make_session(backend)

        await session.load_model()
        assert session.phase is SessionPhase.NOT_LOADED
        assert session.last_error == LOAD_FAILED_MESSAGE

        await session.load_model()
        assert session.phase is SessionPhase.READY
        assert session.last_error is None
        assert backend.load_count == 2


# =============================================================================
# Documents
# =============================================================================


class TestDocuments:
    """Tests for add_document() and remove_document()."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_before_ready_is_ignored(self, session, mock_embedding_backend):
        assert await session.add_document("The sky is blue.") is None
        assert session.documents == []
        assert mock_embedding_backend.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_text_is_ignored(self, ready_session):
        assert await ready_session.add_document("   ") is None
        assert ready_session.documents == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_trims_and_embeds(self, ready_session, mock_embedding_backend):
        document = await ready_session.add_document("  The sky is blue.  ")

        assert document.text == "The sky is blue."
        assert ready_session.documents == ["The sky is blue."]
        assert len(ready_session.document_embeddings[0]) == mock_embedding_backend.dimension
        assert mock_embedding_backend.calls[-1] == [
            SEARCH_PREFIXES.query,
            SEARCH_PREFIXES.document + "The sky is blue.",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_document_visible_before_embedding_completes(self, make_backend):
        session = make_session(make_backend(delay=0.05))
        await session.load_model()

        task = asyncio.create_task(session.add_document("Cats are mammals."))
        await asyncio.sleep(0.01)

        assert session.documents == ["Cats are mammals."]
        assert session.document_embeddings == [None]
        await task
        assert session.document_embeddings[0] is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_failure_keeps_document(self, make_backend):
        backend = make_backend()
        session = make_session(backend)
        await session.load_model()
        backend.fail_embed = True

        await session.add_document("Paris is in France.")

        assert session.documents == ["Paris is in France."]
        assert session.document_embeddings == [None]
        assert session.last_error == ADD_FAILED_MESSAGE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_keeps_alignment(self, ready_session, sample_documents):
        for doc in sample_documents:
            await ready_session.add_document(doc)
        embeddings = ready_session.document_embeddings

        removed = ready_session.remove_document(1)

        assert removed.text == "Paris is in France."
        assert ready_session.documents == ["The sky is blue.", "Cats are mammals."]
        assert ready_session.document_embeddings == [embeddings[0], embeddings[2]]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_invalid_index(self, ready_session):
        await ready_session.add_document("only one")
        with pytest.raises(IndexError):
            ready_session.remove_document(1)
        with pytest.raises(IndexError):
            ready_session.remove_document(-1)
        assert ready_session.documents == ["only one"]


# =============================================================================
# Live query
# =============================================================================


class TestQuery:
    """Tests for set_query() and the debounced live embedding."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rapid_typing_embeds_last_query_once(self, mock_embedding_backend):
        session = make_session(mock_embedding_backend, debounce_ms=20)
        await session.load_model()

        session.set_query("a")
        session.set_query("ab")
        await session.wait_idle()

        assert mock_embedding_backend.calls == [[SEARCH_PREFIXES.query + "ab"]]
        assert session.query == "ab"
        assert len(session.query_embedding) == mock_embedding_backend.dimension

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_query_clears_embedding(self, ready_session, mock_embedding_backend):
        ready_session.set_query("sky")
        await ready_session.wait_idle()
        assert ready_session.query_embedding is not None

        ready_session.set_query("   ")
        await ready_session.wait_idle()

        assert ready_session.query_embedding is None
        assert len(mock_embedding_backend.calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, make_backend):
        session = make_session(make_backend(delay=0.05))
        await session.load_model()

        session.set_query("sky")
        await asyncio.sleep(0.02)
        session.set_query("")
        await session.wait_idle()

        assert session.query_embedding is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_query_before_ready_is_stored_not_embedded(self, session, mock_embedding_backend):
        session.set_query("sky")
        await session.wait_idle()

        assert session.query == "sky"
        assert session.query_embedding is None
        assert mock_embedding_backend.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_live_failure_is_logged(self, make_backend, caplog):
        backend = make_backend()
        session = make_session(backend)
        await session.load_model()
        backend.fail_embed = True

        with caplog.at_level(logging.ERROR):
            session.set_query("sky")
            await session.wait_idle()

        assert session.query_embedding is None
        assert session.last_error is None
        assert "live query embedding" in caplog.text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_close_cancels_pending(self, mock_embedding_backend):
        session = make_session(mock_embedding_backend, debounce_ms=50)
        await session.load_model()

        session.set_query("sky")
        session.close()
        await session.wait_idle()

        assert mock_embedding_backend.calls == []


# =============================================================================
# Compare
# =============================================================================


class TestCompare:
    """Tests for compare()."""

    async def _populate(self, session, query, documents):
        for doc in documents:
            await session.add_document(doc)
        session.set_query(query)
        await session.wait_idle()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ranks_sky_document_first(self, ready_session, sample_query, sample_documents):
        await self._populate(ready_session, sample_query, sample_documents)

        results = await ready_session.compare()

        assert results[0].text == "The sky is blue."
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)
        assert ready_session.ranked_results == results
        assert ready_session.activity is SessionActivity.IDLE
        assert all(e is not None for e in ready_session.document_embeddings)
        assert ready_session.query_embedding is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_embedding_call(self, ready_session, mock_embedding_backend, sample_query, sample_documents):
        await self._populate(ready_session, sample_query, sample_documents)
        before = len(mock_embedding_backend.calls)

        await ready_session.compare()

        assert len(mock_embedding_backend.calls) == before + 1
        assert mock_embedding_backend.calls[-1][0] == SEARCH_PREFIXES.query + sample_query
        assert len(mock_embedding_backend.calls[-1]) == len(sample_documents) + 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_noop_without_query_or_documents(self, ready_session, mock_embedding_backend):
        assert await ready_session.compare() == []

        await ready_session.add_document("The sky is blue.")
        calls = len(mock_embedding_backend.calls)
        assert await ready_session.compare() == []
        assert len(mock_embedding_backend.calls) == calls

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_noop_when_not_ready(self, session, mock_embedding_backend):
        session.set_query("sky")
        assert await session.compare() == []
        assert mock_embedding_backend.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_second_compare_while_running_is_ignored(self, make_backend, sample_query, sample_documents):
        backend = make_backend(delay=0.03)
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)
        before = len(backend.calls)

        first = asyncio.create_task(session.compare())
        await asyncio.sleep(0)
        assert session.activity is SessionActivity.COMPARING
        assert not session.can_compare
        await session.compare()
        await first

        assert len(backend.calls) == before + 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_sets_message_and_clears_results(self, make_backend, sample_query, sample_documents):
        backend = make_backend()
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)
        await session.compare()
        backend.fail_embed = True

        results = await session.compare()

        assert results == []
        assert session.last_error == COMPARE_FAILED_MESSAGE
        assert session.activity is SessionActivity.IDLE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_finite_embeddings_fail_compare(self, make_backend, monkeypatch, sample_query, sample_documents):
        backend = make_backend()
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)
        embeddings = session.document_embeddings
        monkeypatch.setattr(
            backend,
            "embed_texts",
            lambda texts: np.full((len(texts), backend.dimension), np.nan, dtype=np.float32),
        )

        results = await session.compare()

        assert results == []
        assert session.last_error == COMPARE_FAILED_MESSAGE
        assert session.document_embeddings == embeddings

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self, make_backend, sample_query, sample_documents):
        backend = make_backend()
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)
        backend.fail_embed = True
        await session.compare()
        backend.fail_embed = False

        await session.compare()

        assert session.last_error is None
        assert len(session.ranked_results) == len(sample_documents)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_during_compare_keeps_alignment(self, make_backend, sample_query, sample_documents):
        backend = make_backend(delay=0.05)
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)

        task = asyncio.create_task(session.compare())
        await asyncio.sleep(0.01)
        session.remove_document(0)
        results = await task

        assert session.documents == ["Paris is in France.", "Cats are mammals."]
        assert len(session.document_embeddings) == 2
        assert all(e is not None for e in session.document_embeddings)
        assert len(results) == len(sample_documents)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_during_compare_keeps_alignment(self, make_backend, sample_query, sample_documents):
        backend = make_backend(delay=0.03)
        session = make_session(backend)
        await session.load_model()
        await self._populate(session, sample_query, sample_documents)

        compare_task = asyncio.create_task(session.compare())
        await asyncio.sleep(0.01)
        await asyncio.gather(compare_task, session.add_document("Dogs are loyal."))

        assert session.documents[-1] == "Dogs are loyal."
        assert len(session.document_embeddings) == 4
        assert all(e is not None for e in session.document_embeddings)
        assert len(session.ranked_results) == 3


# =============================================================================
# Observation
# =============================================================================


class TestObservation:
    """Tests for listeners and snapshots."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listener_and_unsubscribe(self, ready_session):
        calls = []
        unsubscribe = ready_session.subscribe(calls.append)

        await ready_session.add_document("The sky is blue.")
        count = len(calls)
        assert count >= 1
        assert calls[0] is ready_session

        unsubscribe()
        unsubscribe()
        ready_session.remove_document(0)
        assert len(calls) == count

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_snapshot_is_immutable_copy(self, ready_session):
        await ready_session.add_document("The sky is blue.")
        snapshot = ready_session.snapshot()

        ready_session.remove_document(0)

        assert snapshot.documents == ("The sky is blue.",)
        assert snapshot.phase is SessionPhase.READY
        assert len(snapshot.document_embeddings) == 1
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.query = "changed"
