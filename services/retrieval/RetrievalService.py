"""Retrieval service: embed question → vector search → grounded chat completion."""

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.vector.VectorStoreInterface import VectorStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ValidationError
from shared.models.chat import AskResult, ChatTurn
from shared.models.document import DocumentChunk, SearchHit
from services.retrieval.prompts import CONTEXT_SEPARATOR, NO_RESPONSE_ANSWER, build_system_instruction

_ROLE_MAP = {"user": "user", "model": "assistant"}


class RetrievalService:
    """Answers questions from the passages stored in the vector store."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        vector_store: VectorStoreInterface,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._vector_store = vector_store
        self._llm_client = llm_client
        self.top_k = int(helper_config.get_number_val("RETRIEVAL_TOP_K", default=4))

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_search(self, question: str, top_k: int | None = None) -> list[SearchHit]:
        """Embed a question and return the closest stored passages.

        Args:
            question (str): Natural language question.
            top_k (int | None): Number of passages, RETRIEVAL_TOP_K by default.

        Returns:
            list[SearchHit]: Ranked passages.
        """
        vector = await self._embed_client.do_embed_text(question)
        return await self._vector_store.do_search(vector, self.top_k if top_k is None else top_k)

    async def do_ask(self, question: str, history: list[ChatTurn] | None = None) -> AskResult:
        """Answer a question grounded on the retrieved passages.

        An empty store is not special-cased: the context is then empty and the
        instruction's fallback rule tells the model to say it does not know.

        Args:
            question (str): The user's question.
            history (list[ChatTurn] | None): Prior turns, oldest first.

        Returns:
            AskResult: The answer text and the passages it was grounded on.

        Raises:
            ValidationError: If the question is empty.
            ProviderError: If the embedding or chat call fails.
        """
        if not question or not question.strip():
            raise ValidationError("Missing required field: question")
        history = history or []
        self.logging.info("Ask received (history=%d turns): %r", len(history), question[:80])

        hits = await self.do_search(question)
        sources = [hit.chunk for hit in hits]
        system_instruction = build_system_instruction(self.build_context(sources))
        messages = self.build_messages(question, history)

        answer = await self._llm_client.do_chat(messages, system_instruction=system_instruction)
        if not answer:
            self.logging.warning("Chat provider returned an empty answer.")

        self.logging.info("Ask complete: %d sources used.", len(sources))
        return AskResult(answer=answer or NO_RESPONSE_ANSWER, sources=sources)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def build_context(sources: list[DocumentChunk]) -> str:
        return CONTEXT_SEPARATOR.join(chunk.text for chunk in sources)

    @staticmethod
    def build_messages(question: str, history: list[ChatTurn]) -> list[dict]:
        """Map prior turns to provider roles ("model" → "assistant") and append the question."""
        messages = [{"role": _ROLE_MAP[turn.role], "content": turn.text} for turn in history]
        messages.append({"role": "user", "content": question})
        return messages
