"""Centralized environment configuration management for semsearch.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from semsearch.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> delay = get_environment(EnvVar.QUERY_DEBOUNCE_MS)  # Returns int
    >>> device = get_environment(EnvVar.EMBEDDING_DEVICE)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> delay = get_environment(EnvVar.QUERY_DEBOUNCE_MS, override=50)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "QUERY_DEBOUNCE_MS").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by semsearch.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - embedding: Embedding model selection and placement
        - session: Interactive session behaviour
        - logging: Log output configuration
    """

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    EMBEDDING_MODEL_ID = EnvConfig(
        name="EMBEDDING_MODEL_ID",
        default="google/embeddinggemma-300m",
        var_type=str,
        description="Hugging Face model id (or local directory) of the embedding model",
        category="embedding",
    )
    EMBEDDING_DEVICE = EnvConfig(
        name="EMBEDDING_DEVICE",
        default=None,
        var_type=str,
        description="Torch device for inference ('cuda', 'cpu', None=auto-detect)",
        category="embedding",
    )
    EMBEDDING_DTYPE = EnvConfig(
        name="EMBEDDING_DTYPE",
        default="float32",
        var_type=str,
        description="Model weight precision: float32 or bfloat16 (float16 overflows to NaN)",
        category="embedding",
    )
    EMBEDDING_MODELS_DIR = EnvConfig(
        name="EMBEDDING_MODELS_DIR",
        default=None,  # Computed from repo root
        var_type=Path,
        description="Directory where downloaded model artifacts are cached",
        category="embedding",
    )

    # -------------------------------------------------------------------------
    # Session Configuration
    # -------------------------------------------------------------------------
    QUERY_DEBOUNCE_MS = EnvConfig(
        name="QUERY_DEBOUNCE_MS",
        default=300,
        var_type=int,
        description="Quiet period before a live query embedding is requested",
        category="session",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    SEMSEARCH_LOG_LEVEL = EnvConfig(
        name="SEMSEARCH_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level name used by setup_logging()",
        category="logging",
    )


# =============================================================================
# Repository Root Detection
# =============================================================================


def _find_repo_root(start_path: Path | None = None) -> Path:
    """Find repository root by searching for .gitignore file.

    Falls back to the starting directory when no .gitignore exists above it,
    so an installed package still has a usable cache location.

    Args:
        start_path: Directory to start search from. Defaults to cwd.

    Returns:
        Path to repository root directory.
    """
    start = (start_path or Path.cwd()).resolve()
    current = start

    while True:
        if (current / ".gitignore").exists():
            return current

        parent = current.parent
        if parent == current:
            return start
        current = parent


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None or value == "":
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, bool, or Path).

    Example:
        >>> get_environment(EnvVar.QUERY_DEBOUNCE_MS)
        300
        >>> get_environment(EnvVar.QUERY_DEBOUNCE_MS, override=50)
        50
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_models_dir(override: Path | str | None = None) -> Path:
    """Get the model artifact cache directory.

    Resolution: override > EMBEDDING_MODELS_DIR > {repo_root}/.semsearch/models
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.EMBEDDING_MODELS_DIR)
    if env_path:
        return env_path

    return _find_repo_root() / ".semsearch" / "models"


def get_debounce_seconds(override_ms: int | None = None) -> float:
    """Get the live query debounce delay in seconds.

    Negative values are clamped to zero.
    """
    delay_ms = get_environment(EnvVar.QUERY_DEBOUNCE_MS, override=override_ms)
    return max(int(delay_ms), 0) / 1000.0


def get_log_level() -> int:
    """Resolve SEMSEARCH_LOG_LEVEL to a logging level number.

    Unknown level names fall back to INFO.
    """
    name = str(get_environment(EnvVar.SEMSEARCH_LOG_LEVEL)).upper().strip()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (embedding, session, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_models_dir",
    "get_debounce_seconds",
    "get_log_level",
    # Introspection
    "list_environment_variables",
]
