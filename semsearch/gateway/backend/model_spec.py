"""Model specification for the embedding gateway.

Describes the single supported embedding model: its output dimension,
context length and the task prefixes that select the query or document
region of its vector space.
"""

from dataclasses import dataclass, replace

from semsearch.config import EnvVar, get_environment


@dataclass(frozen=True)
class TaskPrefixes:
    """Fixed strings prepended to inputs before embedding.

    Changing either string moves vectors into a different region of the
    embedding space, so stored or compared vectors stop being comparable.

    Attributes:
        query: Prefix for search queries.
        document: Prefix for documents being searched.
    """

    query: str
    document: str

    def for_query(self, text: str) -> str:
        return self.query + text

    def for_document(self, text: str) -> str:
        return self.document + text


@dataclass(frozen=True)
class ModelSpec:
    """Specification for an embedding model.

    Attributes:
        name: Model identifier (Hugging Face repo id or local directory).
        dimension: Output embedding vector dimension.
        max_tokens: Maximum input length; longer inputs are truncated.
        prefixes: Task prefixes for query and document inputs.
        description: Human-readable description.
        size_mb: Approximate download size in megabytes.
    """

    name: str
    dimension: int
    max_tokens: int
    prefixes: TaskPrefixes
    description: str = ""
    size_mb: int | None = None


SEARCH_PREFIXES = TaskPrefixes(
    query="task: search result | query: ",
    document="title: none | text: ",
)

EMBEDDING_GEMMA = ModelSpec(
    name="google/embeddinggemma-300m",
    dimension=768,
    max_tokens=2048,
    prefixes=SEARCH_PREFIXES,
    description="EmbeddingGemma 300M sentence embeddings (normalized)",
    size_mb=1200,
)

DEFAULT_MODEL = EMBEDDING_GEMMA


def get_model_spec(model: str | ModelSpec | None = None) -> ModelSpec:
    """Resolve a model reference to its ModelSpec.

    Any id other than the registered one (a local mirror directory, a fork)
    is assumed to be the same model family and inherits its dimension and
    prefixes.

    Args:
        model: Model id, ModelSpec, or None for EMBEDDING_MODEL_ID.

    Returns:
        Resolved ModelSpec.
    """
    if isinstance(model, ModelSpec):
        return model
    name = get_environment(EnvVar.EMBEDDING_MODEL_ID, override=model)
    if name == DEFAULT_MODEL.name:
        return DEFAULT_MODEL
    return replace(DEFAULT_MODEL, name=name)


__all__ = [
    "TaskPrefixes",
    "ModelSpec",
    "SEARCH_PREFIXES",
    "EMBEDDING_GEMMA",
    "DEFAULT_MODEL",
    "get_model_spec",
]
