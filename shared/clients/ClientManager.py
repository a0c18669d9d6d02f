from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """Instantiates the engine chosen by <TYPE>_ENGINE for one client type.

    Engines live in shared/clients/<type>/<engine>/<ClassPrefix><Engine>.py,
    e.g. shared/clients/embed/ollama/EmbedClientOllama.py for EMBED_ENGINE=ollama.
    Subclasses set the client type, the class prefix and an optional default engine.
    """

    client_type: str = ""
    class_prefix: str = ""
    default_engine: str | None = None

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the engine name from <TYPE>_ENGINE.

        Returns:
            str: The capitalised engine name (e.g. "Ollama").

        Raises:
            ValueError: If no engine is configured and the type has no default.
        """
        env_key = f"{self.client_type.upper()}_ENGINE"
        engine = self.helper_config.get_string_val(env_key, default=self.default_engine or "")
        if not engine:
            raise ValueError(f"No {self.client_type} engine specified in configuration ({env_key}).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Imports and instantiates the configured engine class.

        Raises:
            ValueError: If the engine is unknown or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type} engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client

    def get_client(self) -> ClientInterface:
        return self.client
