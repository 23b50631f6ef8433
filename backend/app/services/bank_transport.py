import logging
from typing import Optional, Protocol

import httpx

from app.config import BANK_HTTP_TIMEOUT
from app.models.transaction import PageResponse
from app.services.errors import TransportError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send(self, method: str, url: str, headers: dict[str, str]) -> PageResponse:
        ...


class HttpxTransport:
    """
    Transport backed by httpx.AsyncClient.

    Non-2xx statuses are returned as-is; only the HTTP call failing
    (connection, timeout, protocol) raises TransportError.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout or BANK_HTTP_TIMEOUT)

    async def send(self, method: str, url: str, headers: dict[str, str]) -> PageResponse:
        try:
            response = await self.client.request(method, url, headers=headers)
        except httpx.HTTPError as e:
            logger.error("bank_http_request_failed", extra={"method": method, "url": url, "error": str(e)})
            raise TransportError(f"{method} {url} failed: {e}") from e

        return PageResponse(status_code=response.status_code, body=_decode_body(response))

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _decode_body(response: httpx.Response) -> Optional[dict]:
    """Return the JSON object in the response, or None for an empty or non-object payload."""
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError:
        logger.warning(
            "bank_response_not_json",
            extra={"status_code": response.status_code, "body_prefix": response.text[:200]},
        )
        return None
    return data if isinstance(data, dict) else None
