import asyncio
from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ProviderError
from shared.models.config import EnvConfig


class HttpClientInterface(ClientInterface):
    """Client talking to a provider over HTTP through one shared httpx.AsyncClient."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._base_url = self.get_config_val("BASE_URL", default=self._get_default_base_url(), val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

        # connection is created once per process by boot()
        self._client: httpx.AsyncClient | None = None
        self._boot_lock = asyncio.Lock()

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ PROVIDER ##################
    def _get_default_base_url(self) -> str | None:
        """Base URL used when <TYPE>_<ENGINE>_BASE_URL is unset; None makes it required."""
        return None

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=self._get_default_base_url()),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    def _get_auth_header(self) -> dict:
        # keyless for local servers, bearer token for hosted gateways
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    def _get_base_url(self) -> str:
        return self._base_url

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """Path answered with 2xx while the provider is up (e.g. "/models")."""
        pass

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    def is_booted(self) -> bool:
        return self._client is not None

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialise the HTTP client exactly once.

        Concurrent callers wait on the same lock, so only the first one creates
        the connection pool.

        Args:
            transport (httpx.AsyncBaseTransport | None): Optional transport override.
        """
        async with self._boot_lock:
            if self._client is not None:
                return
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
            self.logging.debug("Booted %s client '%s'.", self.get_client_type(), self.get_engine_name())

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> None:
        """Check if the provider is healthy by sending a test request.

        Raises:
            ProviderError: If the provider cannot be reached or answers with an error status.
        """
        await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send an HTTP request to the provider.

        Args:
            method: HTTP method, "GET" or "POST" for the providers used here.
            json: JSON-serialisable body; omitted for a bodiless request.
            endpoint: Path to append to the base URL (leading slash optional).
            additional_headers: Extra headers that override the defaults.
            raise_on_error: Raise ProviderError on a non-2xx status.

        Returns:
            The raw httpx.Response.

        Raises:
            ProviderError: If the client is not booted, the transport fails, or the
                response has a non-2xx status (when raise_on_error is True).
        """
        if self._client is None:
            raise ProviderError("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""

        # httpx sets Content-Type itself for json
        headers: dict = {}
        headers.update(self._get_auth_header())
        if additional_headers:
            headers.update(additional_headers)

        kwargs: dict = {
            "url": f"{self._get_base_url().rstrip('/')}{endpoint}",
            "headers": headers,
            "timeout": self.timeout,
        }
        if json is not None:
            kwargs["json"] = json

        try:
            response = await self._client.request(method, **kwargs)
        except httpx.HTTPError as exc:
            self.logging.error("Request to %s failed: %s", kwargs["url"], exc)
            raise ProviderError(f"Request to {kwargs['url']} failed: {exc}") from exc

        if raise_on_error and response.status_code >= 300:
            self.logging.error(
                "Request to %s failed with status %d: %s",
                kwargs["url"],
                response.status_code,
                response.text[:200],
            )
            raise ProviderError(
                f"Request to {kwargs['url']} failed with status {response.status_code}"
            )

        return response
