"""Vector math utilities for embedding similarity.

Example:
    >>> from semsearch.vector import cosine_similarity
    >>> cosine_similarity([1.0, 0.0], [0.0, 1.0])
    0.0
"""

from .lib import (
    Vector,
    cosine_similarities,
    cosine_similarity,
    dot,
    normalize,
    normalize_rows,
)

__all__ = [
    "Vector",
    "normalize",
    "normalize_rows",
    "dot",
    "cosine_similarity",
    "cosine_similarities",
]
