"""Abstract base class for embedding backends."""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from ..types import ProgressCallback
from .model_spec import ModelSpec


class EmbeddingBackend(ABC):
    """Abstract interface for embedding generation.

    Embedding backends convert already-prefixed text into dense vectors.
    Tokenization and inference are opaque to callers; the only capability
    the rest of the system relies on is `embed_texts`.

    Contract:
        - One output row per input text, in input order.
        - Identical input and model version give identical vectors.
        - All rows share `dimension`; rows are approximately unit-norm.
    """

    @abstractmethod
    def load(self, progress_callback: ProgressCallback | None = None) -> None:
        """Prepare model artifacts and construct the model.

        Called once before the first `embed_texts`. Implementations may
        download files and should report progress through the callback.
        This call blocks; it is run off the event loop by the service.

        Args:
            progress_callback: Receives LoadingProgress updates.

        Raises:
            Exception: Any failure to construct the model.
        """

    @abstractmethod
    def embed_texts(self, texts: Sequence[str]) -> np.ndarray:
        """Generate embeddings for a batch of texts.

        Args:
            texts: Texts to embed, prefixes already applied.

        Returns:
            NumPy array of shape (len(texts), dimension).
        """

    @property
    @abstractmethod
    def spec(self) -> ModelSpec:
        """Get the specification of the model behind this backend."""

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self.spec.dimension

    @property
    def name(self) -> str:
        """Get backend name for logging.

        Returns:
            String identifier for this backend.
        """
        return self.__class__.__name__


__all__ = ["EmbeddingBackend"]
