"""Session layer: UI-facing state machine over the embedding service.

Example usage:
    >>> from semsearch.session import SessionController
    >>> session = SessionController(service, debounce_ms=300)
    >>> await session.load_model()
    >>> session.set_query("What color is the sky?")
"""

from .debounce import Debouncer
from .lib import (
    ADD_FAILED_MESSAGE,
    COMPARE_FAILED_MESSAGE,
    LOAD_FAILED_MESSAGE,
    Document,
    SessionActivity,
    SessionController,
    SessionPhase,
    SessionSnapshot,
)

__all__ = [
    "SessionController",
    "SessionPhase",
    "SessionActivity",
    "SessionSnapshot",
    "Document",
    "Debouncer",
    # User-facing messages
    "LOAD_FAILED_MESSAGE",
    "ADD_FAILED_MESSAGE",
    "COMPARE_FAILED_MESSAGE",
]
