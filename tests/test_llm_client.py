import json

import httpx
import pytest

from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.helper.errors import ProviderError


async def test_system_instruction_is_sent_as_leading_turn(llm_client, provider_stub):
    answer = await llm_client.do_chat(
        [{"role": "user", "content": "How many leave days do I get?"}],
        system_instruction="Answer from the handbook.",
    )

    assert answer == "Stub answer."
    payload = provider_stub.chat_payloads[0]
    assert payload["model"] == "llama3"
    assert payload["stream"] is False
    assert payload["messages"] == [
        {"role": "system", "content": "Answer from the handbook."},
        {"role": "user", "content": "How many leave days do I get?"},
    ]


async def test_without_system_instruction_messages_are_sent_unchanged(llm_client, provider_stub):
    await llm_client.do_chat([{"role": "user", "content": "hi"}])

    assert provider_stub.chat_payloads[0]["messages"] == [{"role": "user", "content": "hi"}]


async def test_missing_content_is_an_empty_answer(llm_client, provider_stub):
    provider_stub.chat_answer = None

    assert await llm_client.do_chat([{"role": "user", "content": "hi"}]) == ""


async def test_closed_client_can_be_booted_again(helper_config, provider_stub):
    client = LLMClientOllama(helper_config=helper_config)
    assert not client.is_booted()

    await client.boot(transport=provider_stub.transport())
    await client.close()
    assert not client.is_booted()

    await client.boot(transport=provider_stub.transport())
    assert await client.do_chat([{"role": "user", "content": "hi"}]) == "Stub answer."
    await client.close()


async def test_requests_before_boot_are_rejected(helper_config):
    client = LLMClientOllama(helper_config=helper_config)

    with pytest.raises(ProviderError):
        await client.do_request(method="GET")


async def test_healthcheck_is_a_bodiless_get_on_the_base_url(helper_config):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="Ollama is running")

    client = LLMClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    await client.do_healthcheck()
    await client.close()

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert str(seen[0].url) == "http://llm.test/"
    assert seen[0].content == b""
    assert "content-type" not in seen[0].headers


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="out of memory"),
        httpx.Response(200, json={"done": True}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_failed_chat_is_a_provider_error(helper_config, response):
    client = LLMClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(lambda request: response))

    with pytest.raises(ProviderError):
        await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()


async def test_openai_chat_reads_first_choice(env, helper_config):
    env.setenv("LLM_OPENAI_BASE_URL", "http://gateway.test/v1")
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Twenty days."}}]})

    client = LLMClientOpenai(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    answer = await client.do_chat([{"role": "user", "content": "Leave?"}], system_instruction="Be brief.")
    await client.close()

    assert answer == "Twenty days."
    path, payload = requests[0]
    assert path == "/v1/chat/completions"
    assert payload["temperature"] == pytest.approx(0.3)
    assert payload["messages"][0] == {"role": "system", "content": "Be brief."}


async def test_openai_chat_without_choices_is_a_provider_error(env, helper_config):
    client = LLMClientOpenai(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})))

    with pytest.raises(ProviderError):
        await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()


def test_manager_requires_an_engine(env, helper_config):
    env.delenv("LLM_ENGINE", raising=False)

    with pytest.raises(ValueError):
        LLMClientManager(helper_config=helper_config)


def test_manager_loads_openai_engine(env, helper_config):
    env.setenv("LLM_ENGINE", "OpenAI")

    assert isinstance(LLMClientManager(helper_config=helper_config).get_client(), LLMClientOpenai)
