"""Ingestion service.

Splits a document's extracted text into chunks, embeds every chunk through the
EmbedClient with bounded concurrency and commits the document with its chunks
to the vector store in one transaction.
"""

import uuid
from enum import Enum
from typing import Callable

from services.ingestion.TextChunker import TextChunker
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.vector.VectorStoreInterface import VectorStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ValidationError
from shared.models.document import ChunkMetadata, CommitResult, DocumentChunk


class IngestionState(str, Enum):
    IDLE = "idle"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


# Failed is reachable from embedding (provider error) and persisting (transaction error)
_TRANSITIONS: dict[IngestionState, set[IngestionState]] = {
    IngestionState.IDLE: {IngestionState.CHUNKING},
    IngestionState.CHUNKING: {IngestionState.EMBEDDING},
    IngestionState.EMBEDDING: {IngestionState.PERSISTING, IngestionState.FAILED},
    IngestionState.PERSISTING: {IngestionState.DONE, IngestionState.FAILED},
    IngestionState.DONE: set(),
    IngestionState.FAILED: set(),
}


class IngestionJob:
    """Tracks the state of one ingestion request. Never re-entered once finished."""

    def __init__(self, document_id: str, name: str, logger) -> None:
        self.document_id = document_id
        self.name = name
        self.state = IngestionState.IDLE
        self.progress = 0.0
        self.logging = logger

    def transition(self, new_state: IngestionState) -> None:
        """Move to new_state.

        Raises:
            RuntimeError: If the transition is not allowed from the current state.
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal ingestion transition {self.state.value} → {new_state.value} "
                f"for document {self.document_id}"
            )
        self.logging.debug("Ingestion %s ('%s'): %s → %s", self.document_id, self.name, self.state.value, new_state.value)
        self.state = new_state


class IngestionService:
    """Drives chunking → embedding → persisting for single documents."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        vector_store: VectorStoreInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._vector_store = vector_store
        self._chunker = TextChunker(
            chunk_size=int(helper_config.get_number_val("INGEST_CHUNK_SIZE", default=1000)),
            overlap=int(helper_config.get_number_val("INGEST_CHUNK_OVERLAP", default=200)),
        )

    ##########################################
    ############### CORE INGEST ##############
    ##########################################

    async def do_ingest_text(
        self,
        text: str,
        name: str,
        type: str,
        on_progress: Callable[[float], None] | None = None,
        document_id: str | None = None,
    ) -> CommitResult:
        """Ingest one document from its extracted text.

        Nothing is persisted until every chunk is embedded, so a failed
        ingestion never leaves a partial document behind.

        Args:
            text (str): Extracted document text.
            name (str): Display name, also stored as each chunk's source.
            type (str): MIME type or extension.
            on_progress (Callable[[float], None] | None): Receives the embedded
                fraction in [0, 1] after each embedding window.
            document_id (str | None): Pre-assigned ID; a new UUID by default.

        Returns:
            CommitResult: The created document's ID and chunk counts.

        Raises:
            ValidationError: If text or name is missing.
            ConfigurationError: If the chunk window cannot advance.
            ProviderError: If any embedding call fails.
            PersistenceError: If the commit fails.
        """
        if not isinstance(text, str):
            raise ValidationError("Document text must be a string.")
        if not name:
            raise ValidationError("Missing required field: name")

        job = IngestionJob(document_id=document_id or str(uuid.uuid4()), name=name, logger=self.logging)
        self.logging.info("Ingesting document: %s (%s), type: %s", name, job.document_id, type)

        job.transition(IngestionState.CHUNKING)
        chunks = [
            DocumentChunk(id=str(uuid.uuid4()), text=passage, metadata=ChunkMetadata(source=name))
            for passage in self._chunker.chunk(text)
        ]
        self.logging.info("Total chunks created for '%s': %d", name, len(chunks))

        job.transition(IngestionState.EMBEDDING)

        def _report(fraction: float) -> None:
            job.progress = fraction
            self.logging.debug("Embedding progress for '%s': %.0f%%", name, fraction * 100)
            if on_progress is not None:
                on_progress(fraction)

        try:
            vectors = await self._embed_client.do_embed_batched([chunk.text for chunk in chunks], on_progress=_report)
        except Exception as exc:
            job.transition(IngestionState.FAILED)
            self.logging.error("Embedding failed for document '%s': %s", name, exc)
            raise
        for chunk, vector in zip(chunks, vectors):
            chunk.embedding = vector

        job.transition(IngestionState.PERSISTING)
        try:
            result = await self._vector_store.do_commit(
                document_id=job.document_id,
                name=name,
                type=type,
                chunks=chunks,
            )
        except Exception as exc:
            job.transition(IngestionState.FAILED)
            self.logging.error("Persisting document '%s' failed: %s", name, exc)
            raise

        job.transition(IngestionState.DONE)
        self.logging.info(
            "Ingested document '%s' (%s): %d chunks stored.", name, job.document_id, result.stored_chunks,
        )
        return result
