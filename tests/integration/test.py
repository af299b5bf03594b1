"""Integration tests against the real embedding model.

These download EmbeddingGemma (a gated Hugging Face repo, several hundred MB)
and are skipped unless SEMSEARCH_RUN_MODEL_TESTS is set.
"""

import os

import pytest

from semsearch.gateway import create_backend
from semsearch.service import EmbeddingService
from semsearch.session import SessionController, SessionPhase


def _model_tests_enabled() -> bool:
    return os.environ.get("SEMSEARCH_RUN_MODEL_TESTS", "").lower() in ("1", "true", "yes")


requires_model = pytest.mark.skipif(
    not _model_tests_enabled(),
    reason="SEMSEARCH_RUN_MODEL_TESTS not set",
)


@pytest.fixture(scope="module")
def model_service() -> EmbeddingService:
    pytest.importorskip("sentence_transformers")
    return EmbeddingService(create_backend())


@pytest.mark.integration
@pytest.mark.slow
@requires_model
class TestSemanticSearch:
    """End-to-end ranking on the real model."""

    @pytest.mark.asyncio
    async def test_sky_query_ranks_sky_document_first(self, model_service):
        session = SessionController(model_service, debounce_ms=0)
        progress = []
        session.subscribe(
            lambda s: progress.append(s.loading_progress) if s.loading_progress else None
        )

        await session.load_model()
        assert session.phase is SessionPhase.READY, session.last_error
        assert progress

        for text in ("The sky is blue.", "Paris is in France.", "Cats are mammals."):
            await session.add_document(text)
        session.set_query("What color is the sky?")
        await session.wait_idle()

        results = await session.compare()

        assert results[0].text == "The sky is blue."
        assert results[0].score > results[-1].score
        assert len(session.query_embedding) == model_service.backend.dimension
        assert all(len(e) == model_service.backend.dimension for e in session.document_embeddings)

    @pytest.mark.asyncio
    async def test_embeddings_are_unit_length(self, model_service):
        import numpy as np

        await model_service.load()
        result = await model_service.embed("sky", ["blue"])

        assert np.linalg.norm(result.query_embedding) == pytest.approx(1.0, abs=1e-3)
        assert np.linalg.norm(result.document_embeddings[0]) == pytest.approx(1.0, abs=1e-3)
