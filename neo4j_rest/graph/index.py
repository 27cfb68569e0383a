"""
Index lookups for nodes and relationships.

Exact-match lookups go to ``{index_base}/{index}/{key}/{value}``; node
index queries go to ``{node_index_base}/{index}?query=...`` using the
index engine's own query syntax (Lucene for the default indexes).
Every URL component is percent-encoded, so values containing ``/``,
``?`` or spaces cannot corrupt the path.

Finding nothing is a normal outcome: the server answers 200 with an
empty array, which becomes an empty list, or None for the single-entity
variants. Any other status, including 404 for an index that does not
exist, raises Neo4jDatabaseError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from neo4j_rest.graph.entities import EntityKind, Node, Relationship, entity_from_json
from neo4j_rest.graph.exceptions import Neo4jDatabaseError
from neo4j_rest.graph.http import RestClient, decode_json
from neo4j_rest.graph.services import ServiceResolver

if TYPE_CHECKING:
    from neo4j_rest.graph.database import GraphDatabase

logger = logging.getLogger(__name__)


def encode_segment(value: Any) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe="")


class IndexLookup:
    """Index access for one entity kind (nodes or relationships).

    Usage:
        nodes = IndexLookup(http, resolver, EntityKind.NODE, db)
        users = await nodes.get_indexed_entities("users", "name", "Alice")
        alice = await nodes.get_indexed_entity("users", "name", "Alice")
    """

    def __init__(
        self,
        http: RestClient,
        resolver: ServiceResolver,
        kind: EntityKind,
        db: GraphDatabase | None = None,
    ) -> None:
        if kind not in (EntityKind.NODE, EntityKind.RELATIONSHIP):
            raise ValueError(f"Indexes hold nodes or relationships, not {kind.value}")
        self._http = http
        self._resolver = resolver
        self._kind = kind
        self._db = db

    @property
    def kind(self) -> EntityKind:
        return self._kind

    async def _index_base(self) -> str:
        if self._kind is EntityKind.NODE:
            return await self._resolver.node_index_url()
        return await self._resolver.relationship_index_url()

    async def _fetch_entities(self, url: str) -> list[Node | Relationship]:
        response = await self._http.get(url)
        if response.status_code != 200:
            raise Neo4jDatabaseError.from_response(response)
        results = decode_json(response)
        if not isinstance(results, list):
            raise Neo4jDatabaseError(
                f"Expected a JSON array from {url}", response=response
            )
        logger.debug("%d %s entities from %s", len(results), self._kind.value, url)
        return [entity_from_json(item, self._db) for item in results]

    async def get_indexed_entities(
        self,
        index: str,
        property_key: str,
        value: Any,
    ) -> list[Node | Relationship]:
        """Return every entity indexed under property_key=value in index.

        Args:
            index: Index name (e.g. "node_auto_index")
            property_key: Indexed key
            value: Value to match exactly

        Returns:
            Matching entities in server order; empty if none match

        Raises:
            Neo4jDatabaseError: On an unexpected response
        """
        base = await self._index_base()
        url = "/".join(
            [
                base.rstrip("/"),
                encode_segment(index),
                encode_segment(property_key),
                encode_segment(value),
            ]
        )
        return await self._fetch_entities(url)

    async def get_indexed_entity(
        self,
        index: str,
        property_key: str,
        value: Any,
    ) -> Node | Relationship | None:
        """Return the first entity indexed under property_key=value, or None."""
        entities = await self.get_indexed_entities(index, property_key, value)
        return entities[0] if entities else None

    async def query_index(self, index: str, query: str) -> list[Node | Relationship]:
        """Run an index-engine query (e.g. Lucene "name:A*") against index."""
        base = await self._index_base()
        url = f"{base.rstrip('/')}/{encode_segment(index)}?query={encode_segment(query)}"
        return await self._fetch_entities(url)
