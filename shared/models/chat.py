"""Pydantic models for question answering."""

from typing import Literal

from pydantic import BaseModel

from shared.models.document import DocumentChunk


class ChatTurn(BaseModel):
    """One prior turn of a conversation as supplied by the caller.

    "model" turns are sent to the chat provider as "assistant" turns.
    """

    role: Literal["user", "model"]
    text: str


class AskResult(BaseModel):
    """Answer to a question plus the passages it was grounded on, in rank order."""

    answer: str
    sources: list[DocumentChunk]
