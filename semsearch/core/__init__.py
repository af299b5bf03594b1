"""Core utilities shared across semsearch.

Host applications call `setup_logging()` once at startup; library modules
only create loggers.
"""

from .log import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
