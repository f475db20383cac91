"""
Transport: the HTTP boundary, backed by httpx.AsyncClient.

Two exchange shapes:
- request(): status + full body
- stream(): status + incrementally readable body

Connection errors and timeouts are httpx's exceptions and propagate
unmodified. HTTP error statuses become ResponseError.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Union

import httpx

from modelwire.config import ClientConfig
from modelwire.errors import ResponseError

logger = logging.getLogger(__name__)


def parse_error_message(body: bytes, status_code: int) -> str:
    """Extract a user-friendly error message from an error response body."""
    try:
        data = json.loads(body)
        if isinstance(data, dict):
            error = data.get("error", "")
            if isinstance(error, dict):
                message = error.get("message", "")
                if message:
                    return message
            elif isinstance(error, str) and error:
                return error
    except (json.JSONDecodeError, UnicodeDecodeError):
        pass
    text = body.decode("utf-8", errors="replace")[:200]
    return text or f"HTTP {status_code}"


class Transport:
    """
    Thin wrapper over one pooled httpx.AsyncClient.

    Args:
        config: Read-only client configuration
        client: Optional pre-built httpx.AsyncClient (tests, custom pools)
        transport: Optional httpx transport used when building the client
    """

    def __init__(
        self,
        config: ClientConfig,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.host,
            headers=config.request_headers(),
            timeout=config.timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        json_body: Optional[dict[str, Any]] = None,
        content: Union[bytes, AsyncIterator[bytes], None] = None,
    ) -> httpx.Response:
        """
        Single exchange; the body is fully read before returning.

        Raises:
            ResponseError: HTTP status >= 400
            httpx.TransportError: connection or transfer failure
        """
        logger.debug("%s %s", method, path)
        response = await self._client.request(method, path, json=json_body, content=content)
        if response.status_code >= 400:
            raise ResponseError(parse_error_message(response.content, response.status_code), response.status_code)
        return response

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        json_body: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Streaming exchange; the response is closed when the block exits.

        Raises:
            ResponseError: HTTP status >= 400 (error body is read first)
            httpx.TransportError: connection or transfer failure
        """
        logger.debug("%s %s (stream)", method, path)
        async with self._client.stream(method, path, json=json_body) as response:
            if response.status_code >= 400:
                error_body = await response.aread()
                raise ResponseError(parse_error_message(error_body, response.status_code), response.status_code)
            yield response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
