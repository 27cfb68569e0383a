"""
Thin async HTTP layer over httpx for the Neo4j REST API.

Every request sends and accepts JSON, forwards the current correlation
ID as X-Request-ID, and converts transport failures into
Neo4jTransportError. Status handling is left to the callers since the
meaning of 204/404 differs per endpoint.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from neo4j_rest.core.logging import get_correlation_id
from neo4j_rest.graph.exceptions import adapt_errors

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class RestClient:
    """JSON-over-HTTP client wrapping a single httpx.AsyncClient.

    The underlying client is reused for every request. When the client
    was injected by the caller, close() leaves it open.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        auth: httpx.Auth | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                auth=auth,
                timeout=timeout,
                headers=JSON_HEADERS,
            )
        self._client = http_client

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def close(self) -> None:
        """Close the owned httpx client. Safe to call more than once."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = dict(JSON_HEADERS)
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Request-ID"] = correlation_id
        return headers

    async def request(
        self,
        method: str,
        url: str,
        body: Any = None,
    ) -> httpx.Response:
        """Send a request and return the raw response.

        Raises:
            Neo4jTransportError: If the request could not be completed
        """
        start = time.perf_counter()
        with adapt_errors(f"{method} {url}"):
            if body is None:
                response = await self._client.request(
                    method, url, headers=self._headers()
                )
            else:
                response = await self._client.request(
                    method, url, json=body, headers=self._headers()
                )
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug(
            "%s %s -> %d",
            method,
            url,
            response.status_code,
            extra={
                "http_method": method,
                "url": url,
                "status_code": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )
        return response

    async def get(self, url: str) -> httpx.Response:
        return await self.request("GET", url)

    async def post(self, url: str, body: Any) -> httpx.Response:
        return await self.request("POST", url, body)


def decode_json(response: httpx.Response) -> Any:
    """Decode a response body as JSON.

    Raises:
        Neo4jDatabaseError: If the body is not valid JSON
    """
    with adapt_errors(f"decoding {response.request.method} {response.request.url}"):
        return response.json()
