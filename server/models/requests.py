"""Request bodies of the HTTP API. Field names follow the JSON wire format."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.models.chat import ChatTurn


class EmbedRequest(BaseModel):
    text: str


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage]
    system_instruction: str = Field(alias="systemInstruction")


class IngestChunkRequest(BaseModel):
    """A chunk as sent by the client; the embedding is checked by the vector store."""

    id: str | None = None
    text: str = ""
    metadata: dict[str, Any] | None = None
    embedding: Any = None


class IngestRequest(BaseModel):
    # optional so missing fields produce a 400 from the store's validation
    id: str | None = None
    name: str | None = None
    type: str | None = None
    chunks: list[IngestChunkRequest] | None = None


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query_embedding: list[float] = Field(alias="queryEmbedding")
    top_k: int | None = Field(default=None, alias="topK")


class AskRequest(BaseModel):
    question: str
    history: list[ChatTurn] = []
