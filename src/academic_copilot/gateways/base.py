"""Shared request/response plumbing for the remote services."""

import logging

import httpx

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A remote call failed: transport, HTTP status, or success=false."""


class JsonGateway:
    """Base class for single-endpoint JSON gateways.

    Each call is one attempt. There is no retry and no client-side timeout;
    the caller sees a ``GatewayError`` for anything other than a 2xx
    response whose body carries ``"success": true``.
    """

    name: str  # "chat", "upload", "speech"

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=None)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, payload: dict) -> dict:
        """POST ``payload`` as JSON to ``{base_url}{path}`` and return the body."""
        if not self.base_url:
            raise GatewayError(f"{self.name} endpoint is not configured")

        url = f"{self.base_url}{path}"
        try:
            resp = await self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise GatewayError(f"{self.name} request failed: {e}") from e

        if not resp.is_success:
            raise GatewayError(f"{self.name} API error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError(f"{self.name} API returned invalid JSON") from e

        if not isinstance(data, dict) or data.get("success") is not True:
            error = data.get("error") if isinstance(data, dict) else None
            raise GatewayError(error or f"{self.name} API reported failure")

        return data
