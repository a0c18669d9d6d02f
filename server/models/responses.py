"""Response bodies of the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from shared.models.document import ChunkMetadata, DocumentChunk


class SourceChunk(BaseModel):
    """A stored passage as returned to clients (never with its embedding)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    document_id: str | None = Field(default=None, serialization_alias="documentId")
    text: str
    metadata: ChunkMetadata

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk) -> "SourceChunk":
        return cls(id=chunk.id, document_id=chunk.document_id, text=chunk.text, metadata=chunk.metadata)


class SearchHitResponse(SourceChunk):
    # NaN scores (zero or mismatched vectors) are sent as null
    score: float | None


class IngestResponse(BaseModel):
    success: bool
    document_id: str = Field(serialization_alias="documentId")
    stored_chunks: int = Field(serialization_alias="storedChunks")
    dropped_chunks: list[str] = Field(serialization_alias="droppedChunks")


class AskResponse(BaseModel):
    answer: str
    sources: list[SourceChunk]
