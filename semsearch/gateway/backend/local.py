"""Local sentence-transformers embedding backend.

Runs the embedding model in-process; nothing leaves the machine once the
artifacts are cached.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import numpy as np

from semsearch.config import EnvVar, get_environment

from ..models import ModelManager, get_model_manager
from ..types import ProgressCallback
from .base import EmbeddingBackend
from .model_spec import ModelSpec, get_model_spec

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class LocalBackend(EmbeddingBackend):
    """Local sentence-transformers embedding backend.

    Supports GPU acceleration when CUDA is available. Inputs longer than
    the model's context are truncated by the model.

    Example:
        >>> backend = LocalBackend()
        >>> backend.load()
        >>> vectors = backend.embed_texts(["title: none | text: hello"])
        >>> print(vectors.shape)
        (1, 768)
    """

    def __init__(
        self,
        model: str | ModelSpec | None = None,
        device: str | None = None,
        dtype: str | None = None,
        normalize: bool = True,
        models_dir: Path | str | None = None,
        model_manager: ModelManager | None = None,
    ):
        """Initialize local backend. Nothing is loaded until `load()`.

        Args:
            model: Model id or spec. Defaults to EMBEDDING_MODEL_ID.
            device: Device for computation. Defaults to EMBEDDING_DEVICE.
            dtype: Weight precision. Defaults to EMBEDDING_DTYPE.
            normalize: Whether to L2-normalize embeddings.
            models_dir: Override path for model storage.
            model_manager: Manager to load through (default: shared one).
        """
        self._spec = get_model_spec(model)
        self._device = get_environment(EnvVar.EMBEDDING_DEVICE, override=device)
        self._dtype = get_environment(EnvVar.EMBEDDING_DTYPE, override=dtype)
        self._normalize = normalize
        self._model_manager = model_manager or get_model_manager(models_dir)
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None

    @property
    def spec(self) -> ModelSpec:
        return self._spec

    @property
    def dimension(self) -> int:
        """Get embedding dimension, as reported by the loaded model if any."""
        if self._dimension is not None:
            return self._dimension
        return self._spec.dimension

    @property
    def name(self) -> str:
        """Get backend identifier."""
        return f"local:{self._spec.name}"

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self, progress_callback: ProgressCallback | None = None) -> None:
        """Download (if needed) and construct the model.

        Args:
            progress_callback: Receives LoadingProgress updates.
        """
        if self._model is not None:
            return

        model = self._model_manager.load(
            self._spec.name,
            device=self._device,
            dtype=self._dtype,
            progress_callback=progress_callback,
        )
        if model.max_seq_length is None or model.max_seq_length > self._spec.max_tokens:
            model.max_seq_length = self._spec.max_tokens
        self._dimension = model.get_sentence_embedding_dimension() or self._spec.dimension
        self._model = model

    def _get_model(self) -> SentenceTransformer:
        if self._model is None:
            self.load()
        return self._model

    def embed_texts(self, texts: Sequence[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Args:
            texts: Texts to embed, prefixes already applied.

        Returns:
            NumPy array of shape (len(texts), dimension).
        """
        if not texts:
            return np.zeros((0, self.dimension), dtype=np.float32)

        model = self._get_model()
        embeddings = model.encode(
            list(texts),
            normalize_embeddings=self._normalize,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return np.asarray(embeddings, dtype=np.float32)


__all__ = ["LocalBackend"]
