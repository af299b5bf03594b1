"""Centralized embedding model manager.

Fetches model artifacts from the Hugging Face Hub into a single cache
directory ({repo_root}/.semsearch/models by default) and constructs
sentence-transformers models from them, reporting progress on the way.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from huggingface_hub.utils import tqdm as hf_tqdm

from semsearch.config import get_models_dir
from semsearch.core import get_logger

from ..backend.model_spec import DEFAULT_MODEL
from ..types import LoadingProgress, LoadingStatus, ProgressCallback

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = get_logger("semsearch.gateway.models")


def _emit(
    callback: ProgressCallback | None,
    status: LoadingStatus,
    file: str,
    progress: float = 0.0,
) -> None:
    if callback is not None:
        callback(LoadingProgress(status=status, file=file, progress=progress))


def make_progress_bar(model_name: str, callback: ProgressCallback) -> type[hf_tqdm]:
    """Build a tqdm class that forwards its completion to `callback`.

    huggingface_hub drives the bar while fetching repository files; every
    redraw is mirrored as a PROGRESS update for `model_name`.
    """

    class _ReportingProgressBar(hf_tqdm):
        def display(self, *args, **kwargs):
            if self.total:
                _emit(
                    callback,
                    LoadingStatus.PROGRESS,
                    model_name,
                    100.0 * self.n / self.total,
                )
            return super().display(*args, **kwargs)

    return _ReportingProgressBar


class ModelManager:
    """Centralized manager for local embedding models.

    Handles artifact download, caching, and loading with a unified
    storage location.

    Example:
        >>> manager = ModelManager()
        >>> model = manager.load("google/embeddinggemma-300m")
        >>> embeddings = model.encode(["hello world"])
    """

    def __init__(self, models_dir: Path | str | None = None):
        """Initialize model manager.

        Args:
            models_dir: Override path for model storage. Uses get_models_dir()
                if not provided.
        """
        self._models_dir = get_models_dir(models_dir)
        self._loaded_models: dict[str, SentenceTransformer] = {}

    @property
    def models_dir(self) -> Path:
        """Get the models storage directory."""
        return self._models_dir

    def ensure_dir(self) -> None:
        """Ensure models directory exists."""
        self._models_dir.mkdir(parents=True, exist_ok=True)

    def download(
        self,
        model_name: str = DEFAULT_MODEL.name,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Fetch model artifacts into the cache directory.

        A model name that points at an existing local directory is used as-is.

        Args:
            model_name: Hugging Face repo id or local directory.
            progress_callback: Receives DOWNLOAD/PROGRESS/DONE updates.

        Returns:
            Local directory containing the model files.
        """
        local_path = Path(model_name)
        if local_path.is_dir():
            logger.info(f"Using local model directory {local_path}")
            _emit(progress_callback, LoadingStatus.DONE, model_name, 100.0)
            return local_path

        from huggingface_hub import snapshot_download

        self.ensure_dir()
        logger.info(f"Fetching model '{model_name}' into {self._models_dir}")
        _emit(progress_callback, LoadingStatus.DOWNLOAD, model_name)

        snapshot = snapshot_download(
            repo_id=model_name,
            cache_dir=str(self._models_dir),
            tqdm_class=(
                make_progress_bar(model_name, progress_callback)
                if progress_callback is not None
                else None
            ),
        )

        _emit(progress_callback, LoadingStatus.DONE, model_name, 100.0)
        return Path(snapshot)

    def load(
        self,
        model_name: str = DEFAULT_MODEL.name,
        device: str | None = None,
        dtype: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> SentenceTransformer:
        """Load a model for inference.

        Args:
            model_name: Model id or local directory to load.
            device: Device for inference ('cuda', 'cpu', or None for auto).
            dtype: Torch dtype name for the weights (e.g. 'float32').
            progress_callback: Receives LoadingProgress updates.

        Returns:
            Loaded SentenceTransformer model.

        Raises:
            ImportError: If sentence-transformers not installed.
        """
        cache_key = f"{model_name}:{device}:{dtype}"
        if cache_key in self._loaded_models:
            return self._loaded_models[cache_key]

        _emit(progress_callback, LoadingStatus.INITIATE, model_name)
        model_path = self.download(model_name, progress_callback)

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ImportError(
                "sentence-transformers required for model loading. "
                "Install with: pip install sentence-transformers"
            ) from e

        model_kwargs = {"torch_dtype": dtype} if dtype else None
        model = SentenceTransformer(
            str(model_path),
            device=device,
            model_kwargs=model_kwargs,
        )
        self._loaded_models[cache_key] = model
        logger.info(f"Loaded model '{model_name}' on device '{model.device}'")
        _emit(progress_callback, LoadingStatus.READY, model_name, 100.0)
        return model


# Module-level singleton for convenience
_default_manager: ModelManager | None = None


def get_model_manager(models_dir: Path | str | None = None) -> ModelManager:
    """Get or create the default model manager.

    Args:
        models_dir: Override models directory. Only used on first call.

    Returns:
        ModelManager instance.
    """
    global _default_manager
    if _default_manager is None:
        _default_manager = ModelManager(models_dir)
    return _default_manager


__all__ = [
    "ModelManager",
    "get_model_manager",
    "make_progress_bar",
]
