"""HTTP client for the Shopify Admin GraphQL API."""

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from simple_bundler.models.pydantic_models import AppSettings

logger = logging.getLogger(__name__)

# Retry configuration for read queries (mutations are never retried)
QUERY_RETRY_MAX_ATTEMPTS = 3
QUERY_RETRY_WAIT_MIN = 1  # seconds
QUERY_RETRY_WAIT_MAX = 4  # seconds

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


class PlatformError(Exception):
    """Raised when the Admin API request fails or returns GraphQL errors."""

    pass


class PlatformUserError(PlatformError):
    """Raised when a mutation reports user errors."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__(", ".join(self.messages) or "Unknown platform error")


class AdminClient:
    """Async GraphQL client bound to one shop.

    The underlying httpx client can be injected (tests use a MockTransport);
    otherwise one is created from the settings and closed by aclose().
    """

    def __init__(
        self,
        settings: AppSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Shop domain, API version and access token.
            http_client: Optional preconfigured httpx client.
        """
        self._settings = settings
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.request_timeout)

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            ACCESS_TOKEN_HEADER: self._settings.access_token,
            "Content-Type": "application/json",
        }

    async def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a read query, retrying on transport errors.

        Returns:
            The ``data`` member of the GraphQL response.

        Raises:
            PlatformError: On HTTP errors, GraphQL errors or exhausted retries.
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(QUERY_RETRY_MAX_ATTEMPTS),
                wait=wait_exponential(min=QUERY_RETRY_WAIT_MIN, max=QUERY_RETRY_WAIT_MAX),
                reraise=True,
            ):
                with attempt:
                    return await self._post(document, variables)
        except httpx.TransportError as e:
            raise PlatformError(f"Request to {self._settings.shop_domain} failed: {e}") from e
        raise RuntimeError("Retry logic failed unexpectedly")

    async def mutate(
        self, document: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a mutation once.

        Returns:
            The ``data`` member of the GraphQL response.

        Raises:
            PlatformError: On HTTP errors, transport errors or GraphQL errors.
        """
        try:
            return await self._post(document, variables)
        except httpx.TransportError as e:
            raise PlatformError(f"Request to {self._settings.shop_domain} failed: {e}") from e

    async def _post(self, document: str, variables: dict[str, Any] | None) -> dict[str, Any]:
        url = self._settings.graphql_url
        logger.debug("POST %s", url)

        response = await self._http.post(
            url,
            json={"query": document, "variables": variables or {}},
            headers=self.headers,
        )
        if response.status_code >= 400:
            logger.error("Admin API error %d: %s", response.status_code, response.text)
            raise PlatformError(f"Admin API returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Admin API returned a non-JSON body: %s", response.text[:200])
            raise PlatformError("Admin API returned a response that is not JSON") from e
        if not isinstance(payload, dict):
            raise PlatformError("Admin API returned an unexpected response")

        errors = payload.get("errors")
        if errors:
            messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors]
            raise PlatformError("; ".join(messages))

        return payload.get("data") or {}

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "AdminClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
