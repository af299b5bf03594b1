"""Centralized embedding model management.

Example:
    >>> from semsearch.gateway.models import get_model_manager
    >>>
    >>> manager = get_model_manager()
    >>> model = manager.load("google/embeddinggemma-300m")
"""

from .lib import ModelManager, get_model_manager, make_progress_bar

__all__ = [
    "ModelManager",
    "get_model_manager",
    "make_progress_bar",
]
