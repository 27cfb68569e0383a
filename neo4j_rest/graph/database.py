"""
GraphDatabase: client facade for a Neo4j server's REST API.

One instance per server. It owns the service discovery cache and an
httpx client, and exposes:
- direct entity retrieval by URL or ID
- exact-match and query lookups in node/relationship indexes
- Cypher queries and Gremlin scripts with typed results

Every public operation resolves the service map first (fetched once,
then cached), builds its endpoint URL from it, and raises only
Neo4jError subclasses.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from neo4j_rest.core.config import Settings, get_settings
from neo4j_rest.graph.cypher import QueryExecutor, ScriptExecutor
from neo4j_rest.graph.entities import (
    EntityKind,
    Node,
    Relationship,
    entity_from_json,
)
from neo4j_rest.graph.exceptions import (
    Neo4jDatabaseError,
    Neo4jNotFoundError,
    adapt_errors,
)
from neo4j_rest.graph.http import RestClient, decode_json
from neo4j_rest.graph.index import IndexLookup
from neo4j_rest.graph.services import ServiceResolver


@runtime_checkable
class GraphDatabaseProtocol(Protocol):
    """Protocol defining the read/query surface of GraphDatabase.

    Any class implementing these methods can stand in for it.
    """

    async def get_node(self, url: str) -> Node | Relationship:
        """Fetch a node by URL."""
        ...

    async def get_indexed_nodes(
        self, index: str, property_key: str, value: Any
    ) -> list[Node | Relationship]:
        """Look nodes up in an index."""
        ...

    async def query(
        self,
        text: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a Cypher query."""
        ...


class GraphDatabase:
    """Facade over a Neo4j server's REST API.

    Usage:
        async with GraphDatabase("http://localhost:7474") as db:
            node = await db.get_node_by_id(0)
            users = await db.get_indexed_nodes("users", "name", "Alice")
            rows = await db.query("START n=node({id}) RETURN n", {"id": 0})

    Entities returned are fresh instances on every call; the database
    keeps no identity map.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the facade. No request is made until first use.

        Args:
            url: Discovery root URL; defaults to settings.neo4j_url
            settings: Settings object; defaults to get_settings()
            http_client: Pre-configured httpx client to reuse. It is not
                closed by close() since the caller owns it.
        """
        self._settings = settings or get_settings()
        self._url = url or self._settings.neo4j_url
        auth = None
        if self._settings.neo4j_user is not None:
            auth = httpx.BasicAuth(
                self._settings.neo4j_user, self._settings.neo4j_password or ""
            )
        self._http = RestClient(
            http_client, auth=auth, timeout=self._settings.neo4j_timeout
        )
        self._resolver = ServiceResolver(self._http, self._url)
        self._node_index = IndexLookup(self._http, self._resolver, EntityKind.NODE, self)
        self._relationship_index = IndexLookup(
            self._http, self._resolver, EntityKind.RELATIONSHIP, self
        )
        self._cypher = QueryExecutor(self._http, self._resolver, self)
        self._gremlin = ScriptExecutor(self._http, self._resolver, self)

    @property
    def url(self) -> str:
        """Get the discovery root URL."""
        return self._url

    @property
    def services(self) -> ServiceResolver:
        return self._resolver

    async def close(self) -> None:
        """Close the HTTP client if this database created it."""
        await self._http.close()

    async def __aenter__(self) -> GraphDatabase:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    # =========================================================================
    # Service discovery
    # =========================================================================

    async def get_root(self) -> dict[str, Any]:
        with adapt_errors("get_root"):
            return await self._resolver.get_root()

    async def get_services(self) -> dict[str, Any]:
        with adapt_errors("get_services"):
            return await self._resolver.get_services()

    async def get_version(self) -> float:
        """Server version as a float, e.g. 1.8; 1.4 if not reported."""
        with adapt_errors("get_version"):
            return await self._resolver.get_version()

    def purge_cache(self) -> None:
        """Drop cached discovery documents so they are fetched again."""
        self._resolver.purge_cache()

    # =========================================================================
    # Entities by URL / ID
    # =========================================================================

    async def _get_entity(self, url: str) -> Node | Relationship:
        response = await self._http.get(url)
        if response.status_code == 404:
            raise Neo4jNotFoundError(f"No entity at {url}", url=url)
        if response.status_code != 200:
            raise Neo4jDatabaseError.from_response(response)
        return entity_from_json(decode_json(response), self)

    async def get_node(self, url: str) -> Node | Relationship:
        """Fetch the node at url.

        Raises:
            Neo4jNotFoundError: If nothing exists at url
            Neo4jDatabaseError: On any other unexpected response
        """
        with adapt_errors(f"get_node {url}"):
            return await self._get_entity(url)

    async def get_relationship(self, url: str) -> Node | Relationship:
        """Fetch the relationship at url."""
        with adapt_errors(f"get_relationship {url}"):
            return await self._get_entity(url)

    async def get_node_by_id(self, node_id: int) -> Node | Relationship:
        """Fetch node node_id.

        Raises:
            ValueError, TypeError: If node_id is not an integer
            Neo4jNotFoundError: If no such node exists
        """
        node_id = int(node_id)
        with adapt_errors(f"get_node_by_id {node_id}"):
            base = await self._resolver.node_url()
            return await self._get_entity(f"{base.rstrip('/')}/{node_id}")

    async def get_relationship_by_id(self, relationship_id: int) -> Node | Relationship:
        relationship_id = int(relationship_id)
        with adapt_errors(f"get_relationship_by_id {relationship_id}"):
            base = await self._resolver.relationship_url()
            return await self._get_entity(f"{base.rstrip('/')}/{relationship_id}")

    # =========================================================================
    # Indexes
    # =========================================================================

    async def get_indexed_nodes(
        self, index: str, property_key: str, value: Any
    ) -> list[Node | Relationship]:
        """Nodes indexed under property_key=value; empty list if none."""
        with adapt_errors(f"get_indexed_nodes {index}"):
            return await self._node_index.get_indexed_entities(index, property_key, value)

    async def get_indexed_node(
        self, index: str, property_key: str, value: Any
    ) -> Node | Relationship | None:
        """First node indexed under property_key=value, or None."""
        with adapt_errors(f"get_indexed_node {index}"):
            return await self._node_index.get_indexed_entity(index, property_key, value)

    async def query_node_index(
        self, index: str, query: str
    ) -> list[Node | Relationship]:
        """Nodes matching an index-engine query, e.g. "name:A*"."""
        with adapt_errors(f"query_node_index {index}"):
            return await self._node_index.query_index(index, query)

    async def get_indexed_relationships(
        self, index: str, property_key: str, value: Any
    ) -> list[Node | Relationship]:
        with adapt_errors(f"get_indexed_relationships {index}"):
            return await self._relationship_index.get_indexed_entities(
                index, property_key, value
            )

    async def get_indexed_relationship(
        self, index: str, property_key: str, value: Any
    ) -> Node | Relationship | None:
        with adapt_errors(f"get_indexed_relationship {index}"):
            return await self._relationship_index.get_indexed_entity(
                index, property_key, value
            )

    # =========================================================================
    # Queries
    # =========================================================================

    async def query(
        self,
        text: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a Cypher query; see QueryExecutor.query()."""
        with adapt_errors("query"):
            return await self._cypher.query(text, params)

    async def execute(
        self,
        script: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a Gremlin script; see ScriptExecutor.execute()."""
        with adapt_errors("execute"):
            return await self._gremlin.execute(script, params)
