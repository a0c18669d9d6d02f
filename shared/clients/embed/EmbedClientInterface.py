import asyncio
from abc import abstractmethod
from typing import Callable

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ProviderError
from shared.helper.vector_math import is_valid_embedding, normalize_vector

ProgressCallback = Callable[[float], None]


class EmbedClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and batching config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL")
        self.embed_concurrency = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_CONCURRENCY", default=5))
        if self.embed_concurrency < 1:
            raise ValueError("EMBED_CONCURRENCY must be at least 1.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]} (already ordered)
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]} (needs sorting)

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send an embedding request and return unit-length vectors.

        Boots the HTTP client on first use, builds the backend-specific payload,
        validates the status and response shape, and L2-normalises every vector.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Normalised embedding vectors in the same order as the inputs.

        Raises:
            ProviderError: If the request fails or the response holds no usable vectors.
        """
        texts = [texts] if isinstance(texts, str) else texts
        if not self.is_booted():
            await self.boot()

        body = self.get_embed_payload(texts)
        response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise ProviderError("Embedding request failed with status %d." % response.status_code)

        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as exc:
            raise ProviderError(str(exc)) from exc
        if len(vectors) != len(texts) or not all(is_valid_embedding(v) for v in vectors):
            raise ProviderError(
                "Embedding provider returned %d vectors for %d texts or a malformed vector."
                % (len(vectors), len(texts))
            )
        return [normalize_vector(v) for v in vectors]

    async def do_embed_text(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text (str): The text to embed.

        Returns:
            list[float]: The normalised embedding vector.
        """
        vectors = await self.do_embed([text])
        return vectors[0]

    async def do_embed_batched(
        self,
        texts: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[list[float]]:
        """Embed many texts with a bounded window of concurrent requests.

        Texts are processed in windows of embed_concurrency. All requests of a
        window run concurrently, windows run one after another. After each window
        on_progress receives min(completed / total, 1.0). The first failure aborts
        the whole batch; nothing is retried.

        Args:
            texts (list[str]): The texts to embed, in order.
            on_progress (ProgressCallback | None): Receives the completed fraction.

        Returns:
            list[list[float]]: One vector per text, in input order.

        Raises:
            ProviderError: If any embedding request fails.
        """
        total = len(texts)
        vectors: list[list[float]] = []
        window_count = (total + self.embed_concurrency - 1) // self.embed_concurrency
        for window_index, window_start in enumerate(range(0, total, self.embed_concurrency)):
            window = texts[window_start:window_start + self.embed_concurrency]
            self.logging.debug("Embedding window %d of %d (%d texts)", window_index + 1, window_count, len(window))
            try:
                window_vectors = await asyncio.gather(*[self.do_embed_text(text) for text in window])
            except ProviderError as exc:
                self.logging.error("Embedding window %d of %d failed: %s", window_index + 1, window_count, exc)
                raise
            vectors.extend(window_vectors)

            if on_progress is not None:
                on_progress(min(len(vectors) / total, 1.0))
        return vectors
