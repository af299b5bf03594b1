"""Atomic math utilities for embedding vectors.

All functions accept plain sequences or NumPy arrays and compute in float32,
matching what the embedding backends emit.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

Vector = Union[Sequence[float], np.ndarray]


def _as_vector(vec: Vector) -> np.ndarray:
    arr = np.asarray(vec, dtype=np.float32)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {arr.shape}")
    return arr


def _as_matrix(matrix: Vector | Sequence[Vector]) -> np.ndarray:
    arr = np.asarray(matrix, dtype=np.float32)
    if arr.ndim == 1 and arr.size == 0:
        return arr.reshape(0, 0)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got shape {arr.shape}")
    return arr


def normalize(vec: Vector) -> np.ndarray:
    """L2-normalize a vector (safe for zero-length)."""
    arr = _as_vector(vec)
    norm = np.linalg.norm(arr)
    return arr / norm if norm > 0 else arr


def normalize_rows(matrix: Vector | Sequence[Vector]) -> np.ndarray:
    """L2-normalize each row of a matrix. Zero rows are left as zeros."""
    arr = _as_matrix(matrix)
    norms = np.linalg.norm(arr, axis=1, keepdims=True)
    safe = np.where(norms > 0, norms, 1.0)
    return arr / safe


def dot(a: Vector, b: Vector) -> float:
    """Dot product of two equal-length vectors.

    Raises:
        ValueError: If the vectors differ in length.
    """
    va, vb = _as_vector(a), _as_vector(b)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions must match: {va.size} != {vb.size}")
    return float(np.dot(va, vb))


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Cosine similarity between two vectors, in [-1, 1].

    A zero vector has similarity 0 with everything.
    """
    score = dot(normalize(a), normalize(b))
    return float(np.clip(score, -1.0, 1.0))


def cosine_similarities(query: Vector, matrix: Vector | Sequence[Vector]) -> np.ndarray:
    """Cosine similarity between `query` and every row of `matrix`.

    Args:
        query: Vector of shape (D,).
        matrix: Candidates of shape (N, D). An empty sequence yields an
            empty result.

    Returns:
        Array of shape (N,) with scores clipped to [-1, 1].

    Raises:
        ValueError: If the candidate dimension differs from the query's.
    """
    q = normalize(query)
    rows = _as_matrix(matrix)
    if rows.shape[0] == 0:
        return np.zeros(0, dtype=np.float32)
    if rows.shape[1] != q.size:
        raise ValueError(
            f"Vector dimensions must match: {q.size} != {rows.shape[1]}"
        )
    scores = normalize_rows(rows) @ q
    return np.clip(scores, -1.0, 1.0)


__all__ = [
    "Vector",
    "normalize",
    "normalize_rows",
    "dot",
    "cosine_similarity",
    "cosine_similarities",
]
