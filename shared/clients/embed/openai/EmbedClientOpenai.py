from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientOpenai(EmbedClientInterface):
    """Embeddings from an OpenAI-compatible /embeddings endpoint (OpenAI, OpenRouter, vLLM, LiteLLM)."""

    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_default_base_url(self) -> str:
        return "https://api.openai.com/v1"

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts}

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Return the vectors of {"data": [{"index": i, "embedding": [...]}, ...]} in input order.

        Raises:
            ValueError: If "data" is missing or an item carries no embedding.
        """
        data = response_data.get("data")
        if not isinstance(data, list) or not data:
            raise ValueError(
                "Embedding response has no 'data' items (keys: %s)." % sorted(response_data.keys())
            )
        # gateways may answer out of order
        items = sorted(data, key=lambda item: item.get("index", 0))
        if any(not item.get("embedding") for item in items):
            raise ValueError("Embedding response contains an item without an embedding.")
        return [item["embedding"] for item in items]
