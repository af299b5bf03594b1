"""Root pytest configuration.

This module provides:
- Environment setup (loads .env)
- Auto-skipping of integration tests when the model cannot be used
"""

from __future__ import annotations

import importlib.util

import pytest
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _has_sentence_transformers() -> bool:
    return importlib.util.find_spec("sentence_transformers") is not None


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Skip integration tests when sentence-transformers is not installed."""
    if _has_sentence_transformers():
        return

    skip_model = pytest.mark.skip(reason="sentence-transformers not installed")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_model)
