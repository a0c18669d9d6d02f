from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base class of every backend client (embedding, chat, vector store).

    Settings are read under "<TYPE>_<ENGINE>_<KEY>", e.g. EMBED_OLLAMA_BASE_URL
    or VECTOR_SQLITE_DATABASE_URL. All keys returned by _get_required_config()
    are checked when the client is constructed, so a misconfigured engine
    fails at startup rather than on its first request.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._getters = {
            "string": helper_config.get_string_val,
            "number": helper_config.get_number_val,
            "bool": helper_config.get_bool_val,
        }
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every declared configuration key once.

        Raises:
            ValueError: If a required key is unset or a value has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """Client family, e.g. "embed", "llm" or "vector"."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Engine name as used in the class name, e.g. "Ollama" or "Sqlite"."""
        pass

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the configuration keys of the engine.

        Returns:
            list[EnvConfig]: Keys without the "<TYPE>_<ENGINE>_" prefix; a None default marks a required key.
        """
        return []

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads one engine setting.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Value for an unset key; None makes the key required.
            val_type (str): "string", "number" or "bool".

        Raises:
            ValueError: If the key is required but unset, or val_type is unknown.
        """
        getter = self._getters.get(val_type)
        if getter is None:
            raise ValueError(
                f"Unsupported config value type '{val_type}' for '{raw_key}' "
                f"in {self.get_client_type()} client '{self.get_engine_name()}'."
            )
        return getter(self._get_config_key_name(raw_key), default=default)

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    @abstractmethod
    async def boot(self) -> None:
        """Acquire the connections the client needs. Calling it again is a no-op."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release everything acquired by boot()."""
        pass

    @abstractmethod
    async def do_healthcheck(self) -> None:
        """Raise if the backend is not reachable."""
        pass
