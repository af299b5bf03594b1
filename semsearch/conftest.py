"""Shared test fixtures for semsearch packages."""

from __future__ import annotations

import hashlib
import re
import threading
import time
from dataclasses import replace
from typing import TYPE_CHECKING, Sequence

import numpy as np
import pytest

from semsearch.gateway import (
    DEFAULT_MODEL,
    EmbeddingBackend,
    LoadingProgress,
    LoadingStatus,
    ModelSpec,
)

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from semsearch.gateway import ProgressCallback


_TOKEN_RE = re.compile(r"[a-z0-9]+")


# =============================================================================
# Mock Backend
# =============================================================================


class MockEmbeddingBackend(EmbeddingBackend):
    """Deterministic bag-of-words embedding backend for testing.

    Each lowercase token is hashed into one of `dimension` buckets; the
    bucket counts are L2-normalized. Texts sharing words therefore score
    higher, which is enough to exercise ranking without a real model.
    """

    def __init__(
        self,
        dimension: int = 256,
        *,
        fail_load: int = 0,
        fail_embed: bool = False,
        delay: float = 0.0,
    ):
        """Initialize mock backend.

        Args:
            dimension: Embedding dimension to use.
            fail_load: Number of initial load() calls that raise.
            fail_embed: Whether embed_texts() raises.
            delay: Seconds each call blocks its worker thread.
        """
        self._spec: ModelSpec = replace(DEFAULT_MODEL, name="mock:bag-of-words", dimension=dimension)
        self.fail_load = fail_load
        self.fail_embed = fail_embed
        self.delay = delay
        self.load_count = 0
        self.calls: list[list[str]] = []
        self._active = 0
        self.max_concurrent = 0
        self._guard = threading.Lock()

    @property
    def spec(self) -> ModelSpec:
        return self._spec

    @property
    def name(self) -> str:
        return "mock:test"

    def load(self, progress_callback: ProgressCallback | None = None) -> None:
        self.load_count += 1
        if self.delay:
            time.sleep(self.delay)
        if self.load_count <= self.fail_load:
            raise OSError("model download failed")
        if progress_callback is not None:
            for status, percent in (
                (LoadingStatus.INITIATE, 0.0),
                (LoadingStatus.PROGRESS, 42.4),
                (LoadingStatus.DONE, 100.0),
            ):
                progress_callback(
                    LoadingProgress(status=status, file=self._spec.name, progress=percent)
                )

    def embed_texts(self, texts: Sequence[str]) -> NDArray[np.float32]:
        with self._guard:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
            self.calls.append(list(texts))
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_embed:
                raise RuntimeError("inference failed")
            return np.stack([self._vector(t) for t in texts]) if texts else (
                np.zeros((0, self.dimension), dtype=np.float32)
            )
        finally:
            with self._guard:
                self._active -= 1

    def _vector(self, text: str) -> NDArray[np.float32]:
        vec = np.zeros(self.dimension, dtype=np.float32)
        for token in _TOKEN_RE.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dimension
            vec[bucket] += 1.0
        norm = np.linalg.norm(vec)
        return vec / norm if norm > 0 else vec


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_embedding_backend() -> MockEmbeddingBackend:
    """Create a mock embedding backend for testing."""
    return MockEmbeddingBackend()


@pytest.fixture
def make_backend() -> type[MockEmbeddingBackend]:
    """Factory for mock backends with failure or latency switches."""
    return MockEmbeddingBackend


@pytest.fixture
def sample_documents() -> list[str]:
    """Small document set with one obvious match for `sample_query`."""
    return ["The sky is blue.", "Paris is in France.", "Cats are mammals."]


@pytest.fixture
def sample_query() -> str:
    return "What color is the sky?"
