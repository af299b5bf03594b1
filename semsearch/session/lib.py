"""SessionController - the state machine behind the search UI.

Coordinates user actions with model readiness: loading the model, adding
and removing documents, live query embedding and full comparisons. The
presentation layer calls the public methods and renders the read-only state
(or a `snapshot()`), re-rendering whenever a subscribed listener fires.

Example:
    >>> session = SessionController(EmbeddingService())
    >>> await session.load_model()
    >>> await session.add_document("The sky is blue.")
    >>> session.set_query("What color is the sky?")
    >>> results = await session.compare()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from semsearch.config import get_debounce_seconds
from semsearch.core import get_logger
from semsearch.gateway import LoadingProgress
from semsearch.ranking import RankedDocument
from semsearch.service import (
    EmbeddingService,
    EmbeddingServiceError,
    InitializationError,
    Loading,
    Ready,
)

from .debounce import Debouncer

logger = get_logger("semsearch.session")

LOAD_FAILED_MESSAGE = "Failed to load the AI model. Please try again."
ADD_FAILED_MESSAGE = "Could not generate embedding for the document."
COMPARE_FAILED_MESSAGE = "An error occurred during processing. Please try again."


class SessionPhase(str, Enum):
    """Model availability as seen by the session."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"


class SessionActivity(str, Enum):
    """What a ready session is doing."""

    IDLE = "idle"
    COMPARING = "comparing"


@dataclass
class Document:
    """A user-supplied document and, once computed, its embedding."""

    text: str
    embedding: list[float] | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of everything the presentation layer renders."""

    phase: SessionPhase
    activity: SessionActivity
    query: str
    documents: tuple[str, ...]
    document_embeddings: tuple[list[float] | None, ...]
    query_embedding: list[float] | None
    ranked_results: tuple[RankedDocument, ...]
    loading_progress: LoadingProgress | None
    last_error: str | None


Listener = Callable[["SessionController"], None]


class SessionController:
    """Orchestrates UI operations against an EmbeddingService.

    Invariants:
        - `documents` and `document_embeddings` always have equal length and
          entry i of both belongs to the same document.
        - At most one compare runs at a time.
        - Nothing is embedded before the service is Ready.
    """

    def __init__(
        self,
        service: EmbeddingService,
        *,
        debounce_ms: int | None = None,
    ):
        """Initialize the session.

        Args:
            service: Embedding service shared by all operations.
            debounce_ms: Live query quiet period. Defaults to QUERY_DEBOUNCE_MS.
        """
        self._service = service
        self._debouncer = Debouncer(get_debounce_seconds(debounce_ms))
        self._documents: list[Document] = []
        self._query = ""
        self._query_embedding: list[float] | None = None
        self._results: list[RankedDocument] = []
        self._loading_progress: LoadingProgress | None = None
        self._last_error: str | None = None
        self._comparing = False
        self._listeners: list[Listener] = []

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def service(self) -> EmbeddingService:
        return self._service

    @property
    def phase(self) -> SessionPhase:
        state = self._service.state
        if isinstance(state, Ready):
            return SessionPhase.READY
        if isinstance(state, Loading):
            return SessionPhase.LOADING
        return SessionPhase.NOT_LOADED

    @property
    def activity(self) -> SessionActivity:
        return SessionActivity.COMPARING if self._comparing else SessionActivity.IDLE

    @property
    def is_ready(self) -> bool:
        return self.phase is SessionPhase.READY

    @property
    def is_comparing(self) -> bool:
        return self._comparing

    @property
    def query(self) -> str:
        return self._query

    @property
    def documents(self) -> list[str]:
        return [doc.text for doc in self._documents]

    @property
    def document_embeddings(self) -> list[list[float] | None]:
        """Embeddings aligned with `documents`; None where not yet embedded."""
        return [doc.embedding for doc in self._documents]

    @property
    def query_embedding(self) -> list[float] | None:
        return self._query_embedding

    @property
    def ranked_results(self) -> list[RankedDocument]:
        return list(self._results)

    @property
    def loading_progress(self) -> LoadingProgress | None:
        return self._loading_progress

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def can_compare(self) -> bool:
        return (
            self.is_ready
            and not self._comparing
            and bool(self._query.strip())
            and bool(self._documents)
        )

    def snapshot(self) -> SessionSnapshot:
        """Capture the current state as an immutable value."""
        return SessionSnapshot(
            phase=self.phase,
            activity=self.activity,
            query=self._query,
            documents=tuple(self.documents),
            document_embeddings=tuple(self.document_embeddings),
            query_embedding=self._query_embedding,
            ranked_results=tuple(self._results),
            loading_progress=self._loading_progress,
            last_error=self._last_error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(self)` after every state change.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------------
    # Model loading
    # -------------------------------------------------------------------------

    async def load_model(self) -> None:
        """Load the embedding model; a no-op while loading or once ready.

        Failures are surfaced through `last_error` and leave the session
        NOT_LOADED so the user can retry.
        """
        if self.phase is not SessionPhase.NOT_LOADED:
            return

        self._last_error = None
        try:
            await self._service.load(self._on_progress)
        except InitializationError as exc:
            logger.error(f"Model load failed: {exc}")
            self._last_error = LOAD_FAILED_MESSAGE
        finally:
            self._loading_progress = None
            self._notify()

    def _on_progress(self, progress: LoadingProgress) -> None:
        logger.debug(f"Loading file: {progress.file}")
        self._loading_progress = progress.rounded()
        self._notify()

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    async def add_document(self, text: str) -> Document | None:
        """Append a document now and embed it in the background.

        The document stays in the list even if embedding fails; its
        embedding is then None and `last_error` is set.

        Args:
            text: Document text; surrounding whitespace is stripped.

        Returns:
            The added Document, or None if the session is not ready or the
            text is blank.
        """
        text = text.strip()
        if not text or not self.is_ready:
            return None

        document = Document(text=text)
        self._documents.append(document)
        self._notify()

        try:
            document.embedding = await self._service.embed_document(text)
        except EmbeddingServiceError as exc:
            logger.error(f"Failed to generate document embedding: {exc}")
            self._last_error = ADD_FAILED_MESSAGE
        self._notify()
        return document

    def remove_document(self, index: int) -> Document:
        """Remove the document at `index` together with its embedding.

        Allowed while a compare is running.

        Raises:
            IndexError: If no document exists at `index`.
        """
        if not 0 <= index < len(self._documents):
            raise IndexError(f"No document at index {index}")
        document = self._documents.pop(index)
        self._notify()
        return document

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def set_query(self, text: str) -> None:
        """Update the query and schedule a debounced live embedding.

        Must be called from within a running event loop. A blank query, or a
        session that is not ready, clears the live embedding instead.
        """
        self._query = text

        if not text.strip() or not self.is_ready:
            self._debouncer.cancel()
            self._query_embedding = None
            self._notify()
            return

        self._debouncer.schedule(lambda: self._embed_live_query(text))
        self._notify()

    async def _embed_live_query(self, text: str) -> None:
        epoch = self._debouncer.epoch
        try:
            result = await self._service.embed(text, [])
        except EmbeddingServiceError as exc:
            logger.error(f"Failed to generate live query embedding: {exc}")
            return

        if not self._debouncer.is_latest(epoch):
            logger.debug(f"Discarding stale query embedding for {text!r}")
            return
        self._query_embedding = result.query_embedding
        self._notify()

    async def wait_idle(self) -> None:
        """Wait for pending and in-flight live query embeddings."""
        await self._debouncer.join()

    def close(self) -> None:
        """Cancel pending live query work."""
        self._debouncer.cancel()

    # -------------------------------------------------------------------------
    # Compare
    # -------------------------------------------------------------------------

    async def compare(self) -> list[RankedDocument]:
        """Embed the query with all documents and rank them.

        A no-op unless the session is ready and idle with a non-blank query
        and at least one document. Embeddings of every compared document are
        overwritten with the fresh ones; documents added or removed while the
        compare runs are not reflected in its results.

        Returns:
            The current ranked results.
        """
        if not self.can_compare:
            return self.ranked_results

        self._comparing = True
        self._last_error = None
        self._results = []
        compared = list(self._documents)
        self._notify()

        try:
            result = await self._service.embed(self._query, [doc.text for doc in compared])
        except EmbeddingServiceError as exc:
            logger.error(f"Compare failed: {exc}")
            self._last_error = COMPARE_FAILED_MESSAGE
            self._results = []
        else:
            self._query_embedding = result.query_embedding
            for document, vector in zip(compared, result.document_embeddings):
                document.embedding = vector
            self._results = list(result.ranked_documents)
        finally:
            self._comparing = False
            self._notify()

        return self.ranked_results


__all__ = [
    "SessionController",
    "SessionPhase",
    "SessionActivity",
    "SessionSnapshot",
    "Document",
    "LOAD_FAILED_MESSAGE",
    "ADD_FAILED_MESSAGE",
    "COMPARE_FAILED_MESSAGE",
]
