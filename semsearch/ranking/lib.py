"""Cosine-similarity ranking with a stable tie-break.

Scores are computed on L2-normalized vectors, so backends that do not emit
unit-norm embeddings still produce scores in [-1, 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from semsearch.vector import Vector, cosine_similarities


@dataclass(frozen=True)
class RankedDocument:
    """A document with its similarity to the query.

    Attributes:
        index: Position of the document in the ranked input.
        text: Document text as supplied (without any task prefix).
        score: Cosine similarity to the query, in [-1, 1].
    """

    index: int
    text: str
    score: float


def rank(
    query: Vector,
    candidates: Vector | Sequence[Vector],
    texts: Sequence[str],
) -> list[RankedDocument]:
    """Rank candidates by cosine similarity to the query.

    Output is sorted by score descending. The sort is stable, so candidates
    with exactly equal scores keep their input order. Every candidate appears
    exactly once.

    Args:
        query: Query embedding of shape (D,).
        candidates: Candidate embeddings of shape (N, D); row i belongs to
            texts[i].
        texts: Candidate texts, same length as candidates.

    Returns:
        List of N RankedDocument, best match first.

    Raises:
        ValueError: If candidates and texts differ in length, or dimensions
            do not match.
    """
    scores = cosine_similarities(query, candidates)
    if len(scores) != len(texts):
        raise ValueError(
            f"Got {len(scores)} candidate vectors for {len(texts)} texts"
        )

    order = np.argsort(-scores, kind="stable")
    return [
        RankedDocument(index=int(i), text=texts[i], score=float(scores[i]))
        for i in order
    ]


def top_k(ranked: Sequence[RankedDocument], k: int) -> list[RankedDocument]:
    """Return the k best entries of an already ranked list."""
    if k <= 0:
        return []
    return list(ranked[:k])


__all__ = ["RankedDocument", "rank", "top_k"]
