"""
Cypher query and Gremlin script execution over the REST API.

Results come back as ``{"columns": [...], "data": [[...], ...]}``; each
row is mapped onto the columns in order and every cell goes through
transform_value(), so nodes and relationships come back typed.

Pass user input through ``params`` rather than formatting it into the
query text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from neo4j_rest.graph.entities import transform_value
from neo4j_rest.graph.exceptions import Neo4jAmbiguousResponseError, Neo4jQueryError
from neo4j_rest.graph.http import RestClient, decode_json
from neo4j_rest.graph.services import ServiceResolver

if TYPE_CHECKING:
    from neo4j_rest.graph.database import GraphDatabase

logger = logging.getLogger(__name__)


def map_rows(
    result: dict[str, Any],
    db: GraphDatabase | None = None,
) -> list[dict[str, Any]]:
    """Map a tabular result onto one dict per row.

    Args:
        result: Decoded response with "columns" and "data"
        db: Owning database for the entities built from the cells

    Returns:
        One dict per row, keyed by column name in column order

    Raises:
        ValueError: If a row and the columns differ in length
    """
    columns = result["columns"]
    return [
        {
            column: transform_value(cell, db)
            for column, cell in zip(columns, row, strict=True)
        }
        for row in result["data"]
    ]


def _check_response(response: httpx.Response, text: str) -> None:
    if response.status_code == 204:
        # The server reports some invalid queries as 204 No Content
        raise Neo4jAmbiguousResponseError(
            f"Query returned no content, it is probably invalid: {text}",
            query=text,
        )
    if response.status_code != 200:
        raise Neo4jQueryError(
            f"Query failed with status {response.status_code}: {text}",
            query=text,
            response=response,
        )


class QueryExecutor:
    """Runs Cypher queries against the server's Cypher endpoint.

    Usage:
        executor = QueryExecutor(http, resolver, db)
        rows = await executor.query(
            "START n=node({id}) RETURN n", {"id": 0}
        )
        rows[0]["n"]  # Node
    """

    def __init__(
        self,
        http: RestClient,
        resolver: ServiceResolver,
        db: GraphDatabase | None = None,
    ) -> None:
        self._http = http
        self._resolver = resolver
        self._db = db

    async def query(
        self,
        text: str,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a Cypher query and return its rows.

        Args:
            text: Cypher query text
            params: Optional query parameters

        Returns:
            List of rows as dictionaries, entities typed

        Raises:
            Neo4jConfigurationError: If the server has no Cypher endpoint
            Neo4jAmbiguousResponseError: If the server answers 204
            Neo4jQueryError: If the server reports an error status
        """
        url = await self._resolver.cypher_url()
        body: dict[str, Any] = {"query": text}
        if params is not None:
            body["params"] = params

        logger.debug("Query: %r", text)
        if params:
            logger.debug("Params: %r", params)

        response = await self._http.post(url, body)
        _check_response(response, text)
        return map_rows(decode_json(response), self._db)


class ScriptExecutor:
    """Runs Gremlin scripts through the GremlinPlugin extension."""

    def __init__(
        self,
        http: RestClient,
        resolver: ServiceResolver,
        db: GraphDatabase | None = None,
    ) -> None:
        self._http = http
        self._resolver = resolver
        self._db = db

    async def execute(
        self,
        script: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a Gremlin script; entities in the result come back typed."""
        url = await self._resolver.gremlin_url()
        body: dict[str, Any] = {"script": script}
        if params is not None:
            body["params"] = params

        logger.debug("Script: %r", script)
        response = await self._http.post(url, body)
        _check_response(response, script)
        return transform_value(decode_json(response), self._db)
