from abc import abstractmethod

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ProviderError


class LLMClientInterface(HttpClientInterface):
    """Chat-completion provider used to phrase grounded answers.

    Messages use the OpenAI shape [{"role": ..., "content": ...}] with the roles
    "system", "user" and "assistant"; engines translate to their own wire format.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.chat_model = helper_config.get_string_val("LLM_CHAT_MODEL")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Request body for a non-streaming completion of messages."""
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Reply text of a parsed response body.

        Returns:
            str: The reply, "" when the provider sent no content.

        Raises:
            ValueError: If the body does not have the expected shape.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict], system_instruction: str | None = None) -> str:
        """Request one completion.

        Args:
            messages (list[dict]): Conversation turns, oldest first, ending with the user's question.
            system_instruction (str | None): Sent as the leading "system" turn when given.

        Returns:
            str: The reply text ("" if the provider produced nothing).

        Raises:
            ProviderError: If the request fails or the response cannot be parsed.
        """
        if not self.is_booted():
            await self.boot()

        turns = list(messages)
        if system_instruction is not None:
            turns.insert(0, {"role": "system", "content": system_instruction})
        self.logging.debug("Chat request to %s with %d turns.", self.get_engine_name(), len(turns))

        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=self.get_chat_payload(turns),
            raise_on_error=True,
        )
        try:
            return self.extract_chat_response(response.json())
        except ValueError as exc:
            self.logging.error("Chat response from '%s' could not be parsed: %s", self.get_engine_name(), exc)
            raise ProviderError(str(exc)) from exc
