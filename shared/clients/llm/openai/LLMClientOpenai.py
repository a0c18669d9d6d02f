from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    """Chat completions from an OpenAI-compatible /chat/completions endpoint."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._temperature = self.get_config_val("TEMPERATURE", default=0.3, val_type="number")

    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_default_base_url(self) -> str:
        return "https://api.openai.com/v1"

    def _get_required_config(self) -> list[EnvConfig]:
        return super()._get_required_config() + [
            EnvConfig(env_key="TEMPERATURE", val_type="number", default=0.3),
        ]

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    def get_chat_payload(self, messages: list[dict]) -> dict:
        return {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self._temperature,
            "stream": False,
        }

    def extract_chat_response(self, response_data: dict) -> str:
        """Return the first choice's content; "" when the model sent null content.

        Raises:
            ValueError: If the response carries no choices.
        """
        choices = response_data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ValueError(
                "Chat completion has no choices (keys: %s)." % sorted(response_data.keys())
            )
        message = choices[0].get("message") or {}
        return message.get("content") or ""
