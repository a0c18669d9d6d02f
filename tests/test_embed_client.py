import asyncio
import json
import math

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.helper.errors import ProviderError
from tests.conftest import fake_vector


def _norm(vector):
    return math.sqrt(sum(x * x for x in vector))


async def test_embed_text_returns_unit_vector(embed_client, provider_stub):
    vector = await embed_client.do_embed_text("annual leave")

    assert len(vector) == 4
    assert _norm(vector) == pytest.approx(1.0)
    raw = fake_vector("annual leave")
    assert vector == pytest.approx([x / _norm(raw) for x in raw])
    assert provider_stub.embed_inputs == ["annual leave"]


async def test_embed_sends_model_and_input(helper_config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"embeddings": [[1.0, 1.0]]})

    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    await client.do_embed(["hello"])
    await client.close()

    assert seen == [("http://embed.test/api/embed", {"model": "bge-small-en", "input": ["hello"]})]


async def test_batched_embedding_preserves_order_and_reports_progress(embed_client, provider_stub):
    texts = [f"passage {i} " + "a" * i for i in range(12)]
    progress = []

    vectors = await embed_client.do_embed_batched(texts, on_progress=progress.append)

    assert len(vectors) == 12
    for text, vector in zip(texts, vectors):
        raw = fake_vector(text)
        assert vector == pytest.approx([x / _norm(raw) for x in raw])
    assert progress == pytest.approx([5 / 12, 10 / 12, 1.0])
    assert sorted(provider_stub.embed_inputs) == sorted(texts)


async def test_batched_embedding_never_exceeds_the_concurrency_window(env, helper_config):
    env.setenv("EMBED_CONCURRENCY", "3")
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json={"embeddings": [[1.0, 0.0]]})

    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    vectors = await client.do_embed_batched([f"t{i}" for i in range(10)])
    await client.close()

    assert len(vectors) == 10
    assert peak == 3


async def test_empty_batch_makes_no_requests(embed_client, provider_stub):
    progress = []

    assert await embed_client.do_embed_batched([], on_progress=progress.append) == []
    assert progress == []
    assert provider_stub.embed_inputs == []


async def test_failed_window_aborts_the_batch(embed_client, provider_stub):
    provider_stub.fail_on = "broken"
    texts = ["ok 1", "ok 2", "ok 3", "ok 4", "ok 5", "ok 6", "broken 7", "ok 8"]
    progress = []

    with pytest.raises(ProviderError):
        await embed_client.do_embed_batched(texts, on_progress=progress.append)

    assert progress == pytest.approx([5 / 8])


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"embeddings": []}),
        httpx.Response(200, json={"embeddings": [["a", "b"]]}),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(404, text="model not found"),
    ],
)
async def test_unusable_response_is_a_provider_error(helper_config, response):
    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(lambda request: response))

    with pytest.raises(ProviderError):
        await client.do_embed_text("question")
    await client.close()


async def test_transport_failure_is_a_provider_error(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderError):
        await client.do_embed_text("question")
    await client.close()


async def test_concurrent_boot_creates_one_connection(helper_config, provider_stub):
    client = EmbedClientOllama(helper_config=helper_config)

    await asyncio.gather(*[client.boot(transport=provider_stub.transport()) for _ in range(5)])
    first = client._client
    await client.boot()

    assert client.is_booted()
    assert client._client is first
    await client.close()
    assert not client.is_booted()


async def test_openai_embeddings_are_sorted_by_index(env, helper_config):
    env.setenv("EMBED_OPENAI_BASE_URL", "http://gateway.test/v1")
    env.setenv("EMBED_OPENAI_API_KEY", "sk-test")
    headers = {}

    def handler(request: httpx.Request) -> httpx.Response:
        headers["authorization"] = request.headers.get("authorization")
        return httpx.Response(
            200,
            json={"data": [{"index": 1, "embedding": [0.0, 2.0]}, {"index": 0, "embedding": [3.0, 0.0]}]},
        )

    client = EmbedClientOpenai(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    vectors = await client.do_embed(["first", "second"])
    await client.close()

    assert vectors == [pytest.approx([1.0, 0.0]), pytest.approx([0.0, 1.0])]
    assert headers["authorization"] == "Bearer sk-test"


def test_manager_loads_the_configured_engine(env, helper_config):
    env.setenv("EMBED_ENGINE", "ollama")

    assert isinstance(EmbedClientManager(helper_config=helper_config).get_client(), EmbedClientOllama)


@pytest.mark.parametrize("engine", ["", "doesnotexist"])
def test_manager_rejects_unknown_engine(env, helper_config, engine):
    env.setenv("EMBED_ENGINE", engine)

    with pytest.raises(ValueError):
        EmbedClientManager(helper_config=helper_config)


def test_missing_model_fails_at_construction(env, helper_config):
    env.delenv("EMBED_MODEL")

    with pytest.raises(ValueError):
        EmbedClientOllama(helper_config=helper_config)
