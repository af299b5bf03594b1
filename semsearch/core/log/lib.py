"""Core logging implementation for semsearch."""

import logging
import sys
from typing import Optional

from semsearch.config import get_log_level

__all__ = ["get_logger", "setup_logging"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[int] = None, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level. Defaults to SEMSEARCH_LOG_LEVEL.
        stream: Output stream.
    """
    logging.basicConfig(
        level=get_log_level() if level is None else level,
        format=LOG_FORMAT,
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "semsearch")
