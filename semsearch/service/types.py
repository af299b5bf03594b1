"""Model lifecycle states and embedding results."""

from dataclasses import dataclass, field
from typing import Union

from semsearch.gateway import LoadingProgress
from semsearch.ranking import RankedDocument


@dataclass(frozen=True)
class Unloaded:
    """No load has been requested yet."""


@dataclass(frozen=True)
class Loading:
    """Model artifacts are being prepared.

    Attributes:
        progress: Most recent progress update, if any arrived yet.
    """

    progress: LoadingProgress | None = None


@dataclass(frozen=True)
class Ready:
    """Model is loaded and accepts embedding requests.

    Attributes:
        dimension: Length of every vector the model emits.
    """

    dimension: int


@dataclass(frozen=True)
class Failed:
    """The last load attempt failed; a new load may be requested.

    Attributes:
        reason: Description of the underlying failure.
    """

    reason: str


ModelState = Union[Unloaded, Loading, Ready, Failed]


@dataclass(frozen=True)
class EmbedResult:
    """Output of one batched embedding request.

    Attributes:
        query_embedding: Vector of the prefixed query.
        document_embeddings: One vector per document, in input order.
        ranked_documents: Documents sorted by similarity (empty when no
            documents were given).
    """

    query_embedding: list[float]
    document_embeddings: list[list[float]] = field(default_factory=list)
    ranked_documents: list[RankedDocument] = field(default_factory=list)


__all__ = [
    "Unloaded",
    "Loading",
    "Ready",
    "Failed",
    "ModelState",
    "EmbedResult",
]
