"""Backend factory for creating embedding backends from configuration."""

from pathlib import Path

from .base import EmbeddingBackend
from .model_spec import ModelSpec


def create_backend(
    model: str | ModelSpec | None = None,
    *,
    device: str | None = None,
    dtype: str | None = None,
    models_dir: Path | str | None = None,
    **kwargs,
) -> EmbeddingBackend:
    """Create the embedding backend.

    Unset arguments fall back to the EMBEDDING_* environment variables.

    Args:
        model: Model id or ModelSpec (default: EMBEDDING_MODEL_ID).
        device: Device for local models ('cuda', 'cpu', or None for auto).
        dtype: Weight precision ('float32', 'bfloat16', ...).
        models_dir: Directory for cached model artifacts.
        **kwargs: Additional arguments passed to backend constructor.

    Returns:
        Configured, not yet loaded, EmbeddingBackend instance.

    Example:
        >>> backend = create_backend(device="cpu")
        >>> backend.load()
        >>> vectors = backend.embed_texts(["title: none | text: hello world"])
    """
    from .local import LocalBackend

    return LocalBackend(
        model=model,
        device=device,
        dtype=dtype,
        models_dir=models_dir,
        **kwargs,
    )


__all__ = ["create_backend"]
