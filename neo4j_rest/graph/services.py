"""
Service discovery for the Neo4j REST API.

The server describes itself in two documents:
- the discovery root (GET on the configured URL), whose ``data`` field
  points at the service map
- the service map, listing the Cypher endpoint, index bases, the node
  collection, extensions and the server version

Both are fetched lazily and cached for the life of the resolver. Each
cache is a single-flight memoised future: concurrent callers share one
in-flight fetch instead of each issuing their own.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from neo4j_rest.graph.exceptions import (
    Neo4jConfigurationError,
    Neo4jDatabaseError,
)
from neo4j_rest.graph.http import RestClient, decode_json

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Servers that predate the neo4j_version field
LEGACY_VERSION = 1.4

_VERSION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)")


class CacheState(Enum):
    """Lifecycle of a SingleFlight cache."""

    UNSET = "UNSET"
    PENDING = "PENDING"
    SET = "SET"


class SingleFlight(Generic[T]):
    """Lazily computed value shared by all callers.

    The first get() starts the fetch as a task; callers arriving while
    it runs await the same task; once it succeeds the value is returned
    directly. A failed or cancelled fetch leaves the cache UNSET so the
    next caller retries. clear() forgets the value (and detaches any
    in-flight fetch, whose result is then discarded).
    """

    def __init__(self, fetch: Callable[[], Awaitable[T]], name: str = "value") -> None:
        self._fetch = fetch
        self._name = name
        self._state = CacheState.UNSET
        self._task: asyncio.Future[T] | None = None
        self._value: T | None = None

    @property
    def state(self) -> CacheState:
        return self._state

    async def get(self) -> T:
        if self._state is CacheState.SET:
            return self._value  # type: ignore[return-value]
        if self._state is CacheState.UNSET:
            logger.debug("Fetching %s", self._name)
            self._task = asyncio.ensure_future(self._fetch())
            self._task.add_done_callback(self._on_done)
            self._state = CacheState.PENDING
        assert self._task is not None  # For type checker
        return await asyncio.shield(self._task)

    def _on_done(self, task: asyncio.Future[T]) -> None:
        if task is not self._task:
            return
        if task.cancelled() or task.exception() is not None:
            self._task = None
            self._state = CacheState.UNSET
            return
        self._value = task.result()
        self._state = CacheState.SET

    def clear(self) -> None:
        self._task = None
        self._value = None
        self._state = CacheState.UNSET


def parse_version(raw: Any) -> float:
    """Parse a server version string as a float.

    Best effort: "1.5.M02" -> 1.5, "1.8.2" -> 1.8. Missing or
    unparseable versions are treated as LEGACY_VERSION.
    """
    if raw is None:
        return LEGACY_VERSION
    match = _VERSION_PATTERN.match(str(raw))
    if match is None:
        logger.warning("Unparseable neo4j_version %r, assuming %s", raw, LEGACY_VERSION)
        return LEGACY_VERSION
    return float(match.group(1))


class ServiceResolver:
    """Resolves and caches the server's discovery metadata.

    Every endpoint URL the client uses is derived here, so callers never
    read the raw service map themselves.

    Usage:
        resolver = ServiceResolver(http, "http://localhost:7474")
        services = await resolver.get_services()
        cypher_url = await resolver.cypher_url()
    """

    def __init__(self, http: RestClient, url: str) -> None:
        self._http = http
        self._url = url
        self._root: SingleFlight[dict[str, Any]] = SingleFlight(
            self._fetch_root, name="discovery root"
        )
        self._services: SingleFlight[dict[str, Any]] = SingleFlight(
            self._fetch_services, name="service map"
        )

    @property
    def url(self) -> str:
        return self._url

    async def _fetch_document(self, url: str) -> dict[str, Any]:
        response = await self._http.get(url)
        if response.status_code != 200:
            raise Neo4jDatabaseError.from_response(response)
        document = decode_json(response)
        if not isinstance(document, dict):
            raise Neo4jDatabaseError(
                f"Expected a JSON object from {url}", response=response
            )
        return document

    async def _fetch_root(self) -> dict[str, Any]:
        return await self._fetch_document(self._url)

    async def _fetch_services(self) -> dict[str, Any]:
        root = await self.get_root()
        services_url = root.get("data")
        if not services_url:
            raise Neo4jConfigurationError(
                f"Discovery root at {self._url} has no service map link"
            )
        services = await self._fetch_document(services_url)
        logger.info(
            "Resolved Neo4j services at %s (version %s)",
            services_url,
            services.get("neo4j_version", "unknown"),
        )
        return services

    async def get_root(self) -> dict[str, Any]:
        """Return the discovery root, fetching it on first use."""
        return await self._root.get()

    async def get_services(self) -> dict[str, Any]:
        """Return the service map, fetching root and map on first use."""
        return await self._services.get()

    def purge_cache(self) -> None:
        """Forget both documents; the next call fetches them again."""
        logger.debug("Purging service discovery cache for %s", self._url)
        self._root.clear()
        self._services.clear()

    async def get_version(self) -> float:
        services = await self.get_services()
        return parse_version(services.get("neo4j_version"))

    # -------------------------------------------------------------------------
    # Endpoint URLs
    # -------------------------------------------------------------------------

    async def _require(self, key: str, capability: str) -> str:
        services = await self.get_services()
        value = services.get(key)
        if not value:
            raise Neo4jConfigurationError(f"Server does not advertise {capability}")
        return value

    async def node_url(self) -> str:
        return await self._require("node", "a node collection")

    async def relationship_url(self) -> str:
        """Base URL of the relationship collection.

        Servers do not advertise it, so it is derived from the node
        collection by replacing its final ``node`` path segment. A
        ``relationship`` entry in the service map takes precedence.
        """
        services = await self.get_services()
        if services.get("relationship"):
            return services["relationship"]
        node_url = await self.node_url()
        base, _, segment = node_url.rstrip("/").rpartition("/")
        if segment != "node":
            raise Neo4jConfigurationError(
                f"Cannot derive relationship collection from {node_url}"
            )
        return f"{base}/relationship"

    async def node_index_url(self) -> str:
        return await self._require("node_index", "a node index")

    async def relationship_index_url(self) -> str:
        return await self._require("relationship_index", "a relationship index")

    async def cypher_url(self) -> str:
        """Cypher endpoint: native on newer servers, plugin on older ones."""
        services = await self.get_services()
        if services.get("cypher"):
            return services["cypher"]
        plugin = _extension(services, "CypherPlugin", "execute_query")
        if plugin:
            return plugin
        raise Neo4jConfigurationError("Cypher plugin not installed")

    async def gremlin_url(self) -> str:
        services = await self.get_services()
        plugin = _extension(services, "GremlinPlugin", "execute_script")
        if plugin:
            return plugin
        raise Neo4jConfigurationError("Gremlin plugin not installed")


def _extension(services: dict[str, Any], plugin: str, method: str) -> str | None:
    extensions = services.get("extensions") or {}
    return (extensions.get(plugin) or {}).get(method)
