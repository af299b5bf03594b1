"""Centralized configuration management for semsearch.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from semsearch.config import EnvVar, get_environment
    >>>
    >>> # Get any environment variable with automatic type conversion
    >>> delay = get_environment(EnvVar.QUERY_DEBOUNCE_MS)  # Returns int: 300
    >>> model = get_environment(EnvVar.EMBEDDING_MODEL_ID)  # Returns str
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("embedding"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    embedding: Model id, device, precision and artifact cache directory
    session: Interactive session timing (query debounce)
    logging: Log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_debounce_seconds,
    get_environment,
    get_environment_info,
    get_log_level,
    get_models_dir,
    # Introspection
    list_environment_variables,
)

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
