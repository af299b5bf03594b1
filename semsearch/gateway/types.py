"""Shared types for the model gateway: load progress reporting."""

import math
from enum import Enum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoadingStatus(str, Enum):
    """Phases reported while model artifacts are prepared."""

    INITIATE = "initiate"  # Load requested for a model
    DOWNLOAD = "download"  # Artifact fetch started
    PROGRESS = "progress"  # Artifact fetch advanced
    DONE = "done"  # Artifacts available locally
    READY = "ready"  # Model constructed and usable


class LoadingProgress(BaseModel):
    """A single progress update emitted during the first model load.

    Attributes:
        status: Current loading phase.
        file: Model id or artifact the update refers to.
        progress: Completion percentage, clamped to [0, 100].
    """

    status: LoadingStatus
    file: str = ""
    progress: float = Field(0.0, description="Completion percentage (0-100)")

    model_config = ConfigDict(frozen=True)

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp_progress(cls, value: object) -> float:
        if value is None:
            return 0.0
        return min(max(float(value), 0.0), 100.0)

    def rounded(self) -> "LoadingProgress":
        """Copy with the percentage rounded half up to a whole number for display."""
        return self.model_copy(update={"progress": float(math.floor(self.progress + 0.5))})

    def describe(self) -> str:
        """Human-readable one-line summary, e.g. 'progress: model (42%)'."""
        return f"{self.status.value}: {self.file} ({self.progress:.0f}%)"


ProgressCallback = Callable[[LoadingProgress], None]


__all__ = ["LoadingStatus", "LoadingProgress", "ProgressCallback"]
