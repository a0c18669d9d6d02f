"""Shared fixtures: environment, config, in-memory vector store and mock providers."""

import json
import logging

import httpx
import pytest

from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.vector.sqlite.VectorStoreSqlite import VectorStoreSqlite
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

EMBED_BASE_URL = "http://embed.test"
LLM_BASE_URL = "http://llm.test"


def fake_vector(text: str) -> list[float]:
    """Deterministic 4-dimensional stand-in for a sentence embedding."""
    return [
        1.0 + text.count("a"),
        1.0 + text.count("e"),
        1.0 + text.count("i"),
        1.0 + len(text) % 7,
    ]


class ProviderStub:
    """httpx handler imitating Ollama's /api/embed and /api/chat endpoints."""

    def __init__(self) -> None:
        self.embed_inputs: list[str] = []
        self.chat_payloads: list[dict] = []
        self.chat_answer: str | None = "Stub answer."
        self.fail_on: str | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/embed":
            body = json.loads(request.content)
            self.embed_inputs.extend(body["input"])
            if self.fail_on is not None and any(self.fail_on in text for text in body["input"]):
                return httpx.Response(500, text="model crashed")
            return httpx.Response(200, json={"embeddings": [fake_vector(text) for text in body["input"]]})
        if request.url.path == "/api/chat":
            self.chat_payloads.append(json.loads(request.content))
            return httpx.Response(200, json={"message": {"role": "assistant", "content": self.chat_answer}})
        return httpx.Response(200, text="Ollama is running")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setenv("EMBED_MODEL", "bge-small-en")
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", EMBED_BASE_URL)
    monkeypatch.setenv("LLM_CHAT_MODEL", "llama3")
    monkeypatch.setenv("LLM_OLLAMA_BASE_URL", LLM_BASE_URL)
    monkeypatch.setenv("VECTOR_SQLITE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    for key in ("EMBED_DIMENSION", "EMBED_CONCURRENCY", "INGEST_CHUNK_SIZE", "INGEST_CHUNK_OVERLAP", "RETRIEVAL_TOP_K"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("policy_rag.tests")))


@pytest.fixture
def provider_stub() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
async def vector_store(helper_config):
    store = VectorStoreSqlite(helper_config=helper_config)
    await store.boot()
    yield store
    await store.close()


@pytest.fixture
async def embed_client(helper_config, provider_stub):
    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=provider_stub.transport())
    yield client
    await client.close()


@pytest.fixture
async def llm_client(helper_config, provider_stub):
    client = LLMClientOllama(helper_config=helper_config)
    await client.boot(transport=provider_stub.transport())
    yield client
    await client.close()
