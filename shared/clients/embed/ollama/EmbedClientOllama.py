from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientOllama(EmbedClientInterface):
    """Embeddings from an Ollama server.

    POST /api/embed takes the whole batch in "input" and answers
    {"embeddings": [[...], ...]} in input order.
    """

    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_endpoint_healthcheck(self) -> str:
        # GET / answers "Ollama is running"
        return "/"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts}

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        embeddings = response_data.get("embeddings")
        if not isinstance(embeddings, list) or not embeddings:
            raise ValueError(
                "Ollama /api/embed returned no embeddings (keys: %s)." % sorted(response_data.keys())
            )
        return embeddings
