from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientOllama(LLMClientInterface):
    """Chat completions from an Ollama server (POST /api/chat, non-streaming)."""

    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_endpoint_healthcheck(self) -> str:
        return "/"

    def _get_endpoint_chat(self) -> str:
        return "/api/chat"

    def get_chat_payload(self, messages: list[dict]) -> dict:
        return {"model": self.chat_model, "messages": messages, "stream": False}

    def extract_chat_response(self, response_data: dict) -> str:
        message = response_data.get("message")
        if not isinstance(message, dict):
            raise ValueError(
                "Ollama /api/chat returned no message (keys: %s)." % sorted(response_data.keys())
            )
        return message.get("content") or ""
