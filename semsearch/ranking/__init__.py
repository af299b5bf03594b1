"""Similarity ranking of candidate documents against a query vector."""

from .lib import RankedDocument, rank, top_k

__all__ = ["RankedDocument", "rank", "top_k"]
