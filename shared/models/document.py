"""Pydantic models for documents and their chunks.

Hierarchy:
  Document:      a source file registered in the vector store.
  DocumentChunk: one passage of a document, the unit of embedding and retrieval.
  CommitResult:  outcome of persisting one document with its chunks.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A source document. Immutable once created; deleting it removes its chunks."""

    id: str
    name: str
    type: str
    created_at: datetime


class ChunkMetadata(BaseModel):
    """Metadata stored alongside each chunk.

    Attributes:
        source:      Name of the file the chunk was cut from.
        page_number: Page the chunk starts on, when the extractor knows it.
    """

    model_config = ConfigDict(populate_by_name=True)

    source: str
    page_number: int | None = Field(default=None, alias="pageNumber")


class DocumentChunk(BaseModel):
    """A passage of a document.

    The embedding is left untyped on purpose: callers may hand in chunks whose
    embedding is missing or malformed. The vector store drops those instead of
    failing the whole document.
    """

    id: str
    text: str
    metadata: ChunkMetadata
    embedding: Any = None
    document_id: str | None = None


class CommitResult(BaseModel):
    """Outcome of VectorStoreInterface.do_commit().

    Attributes:
        document_id:    ID of the document that was created.
        stored_chunks:  Number of chunks written.
        dropped_chunks: IDs of chunks skipped because their embedding was missing or invalid.
    """

    document_id: str
    stored_chunks: int
    dropped_chunks: list[str] = []


class SearchHit(BaseModel):
    """A chunk returned by a similarity search together with its cosine score."""

    chunk: DocumentChunk
    score: float
