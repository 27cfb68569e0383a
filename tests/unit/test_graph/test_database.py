"""
Unit tests for GraphDatabase: construction, entity retrieval by URL
and by ID, request headers and client lifecycle.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from neo4j_rest.core.config import Settings
from neo4j_rest.core.logging import clear_correlation_id, set_correlation_id
from neo4j_rest.graph.database import GraphDatabase, GraphDatabaseProtocol
from neo4j_rest.graph.entities import Node, Relationship
from neo4j_rest.graph.exceptions import (
    Neo4jDatabaseError,
    Neo4jError,
    Neo4jNotFoundError,
    Neo4jTransportError,
)
from tests.fakes import BASE_URL, DATA_URL, FakeNeo4jServer, node_json, relationship_json

MakeDb = Callable[[], GraphDatabase]


# =============================================================================
# Test: Initialization
# =============================================================================


class TestGraphDatabaseInitialization:
    """Tests for GraphDatabase construction and configuration."""

    def test_url_defaults_to_settings(self, settings: Settings) -> None:
        db = GraphDatabase(settings=settings)

        assert db.url == BASE_URL

    def test_explicit_url_wins(self, settings: Settings) -> None:
        db = GraphDatabase("http://db.example:7474", settings=settings)

        assert db.url == "http://db.example:7474"
        assert db.services.url == "http://db.example:7474"

    def test_implements_protocol(self, settings: Settings) -> None:
        assert isinstance(GraphDatabase(settings=settings), GraphDatabaseProtocol)

    @pytest.mark.asyncio
    async def test_close_closes_owned_client(self, settings: Settings) -> None:
        db = GraphDatabase(settings=settings)

        await db.close()
        await db.close()

        assert db._http.is_closed

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, settings: Settings) -> None:
        client = httpx.AsyncClient(transport=FakeNeo4jServer().transport())

        async with GraphDatabase(settings=settings, http_client=client):
            pass

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_basic_auth_from_settings(self) -> None:
        settings = Settings(
            neo4j_url=BASE_URL, neo4j_user="neo4j", neo4j_password="secret"
        )

        async with GraphDatabase(settings=settings) as db:
            assert isinstance(db._http._client.auth, httpx.BasicAuth)

    @pytest.mark.asyncio
    async def test_no_auth_without_user(self, settings: Settings) -> None:
        async with GraphDatabase(settings=settings) as db:
            assert db._http._client.auth is None


# =============================================================================
# Test: Entities by URL
# =============================================================================


class TestGetEntity:
    """Tests for direct retrieval by self URL."""

    @pytest.mark.asyncio
    async def test_get_node(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/7", node_json(7, {"name": "Alice"}))

        async with make_db() as db:
            node = await db.get_node(f"{DATA_URL}/node/7")

        assert node == Node(url=f"{DATA_URL}/node/7", data={"name": "Alice"})
        assert node.db is db

    @pytest.mark.asyncio
    async def test_get_relationship(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json(
            "GET", "/db/data/relationship/3", relationship_json(3, "LIKES", 1, 2)
        )

        async with make_db() as db:
            rel = await db.get_relationship(f"{DATA_URL}/relationship/3")

        assert isinstance(rel, Relationship)
        assert rel.type == "LIKES"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, make_db: MakeDb) -> None:
        url = f"{DATA_URL}/node/999"

        async with make_db() as db:
            with pytest.raises(Neo4jNotFoundError) as exc_info:
                await db.get_node(url)

        assert exc_info.value.url == url

    @pytest.mark.asyncio
    async def test_other_status_is_database_error(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/1", {"message": "boom"}, status_code=500)

        async with make_db() as db:
            with pytest.raises(Neo4jDatabaseError) as exc_info:
                await db.get_node(f"{DATA_URL}/node/1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == {"message": "boom"}

    @pytest.mark.asyncio
    async def test_invalid_json_is_database_error(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_handler(
            "GET",
            "/db/data/node/1",
            lambda _request: httpx.Response(200, text="<html>proxy error</html>"),
        )

        async with make_db() as db:
            with pytest.raises(Neo4jDatabaseError):
                await db.get_node(f"{DATA_URL}/node/1")

    @pytest.mark.asyncio
    async def test_transport_error(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        def time_out(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        fake_server.set_handler("GET", "/db/data/node/1", time_out)

        async with make_db() as db:
            with pytest.raises(Neo4jTransportError):
                await db.get_node(f"{DATA_URL}/node/1")

    @pytest.mark.asyncio
    async def test_no_identity_cache(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/7", node_json(7))

        async with make_db() as db:
            first = await db.get_node(f"{DATA_URL}/node/7")
            second = await db.get_node(f"{DATA_URL}/node/7")

        assert first == second
        assert first is not second
        assert fake_server.count("GET", "/db/data/node/7") == 2


# =============================================================================
# Test: Entities by ID
# =============================================================================


class TestGetEntityById:
    """Tests for retrieval by numeric ID."""

    @pytest.mark.asyncio
    async def test_node_by_id(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/0", node_json(0))

        async with make_db() as db:
            node = await db.get_node_by_id(0)

        assert node.id == 0

    @pytest.mark.asyncio
    async def test_relationship_by_id_uses_derived_collection(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json(
            "GET", "/db/data/relationship/12", relationship_json(12, "KNOWS", 0, 1)
        )

        async with make_db() as db:
            rel = await db.get_relationship_by_id(12)

        assert isinstance(rel, Relationship)
        assert rel.id == 12

    @pytest.mark.asyncio
    async def test_missing_id_is_not_found(self, make_db: MakeDb) -> None:
        async with make_db() as db:
            with pytest.raises(Neo4jNotFoundError):
                await db.get_relationship_by_id(404)

    @pytest.mark.asyncio
    async def test_non_integer_id_is_caller_error(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        """
        GIVEN an id that is not an integer
        WHEN it is looked up
        THEN the conversion error reaches the caller and no request is made
        """
        async with make_db() as db:
            with pytest.raises(ValueError) as exc_info:
                await db.get_node_by_id("abc")  # type: ignore[arg-type]
            with pytest.raises(TypeError):
                await db.get_relationship_by_id(None)  # type: ignore[arg-type]

        assert not isinstance(exc_info.value, Neo4jError)
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_numeric_string_id_is_accepted(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/7", node_json(7))

        async with make_db() as db:
            node = await db.get_node_by_id("7")  # type: ignore[arg-type]

        assert node.id == 7

    @pytest.mark.asyncio
    async def test_lookup_resolves_services_first(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        fake_server.set_json("GET", "/db/data/node/0", node_json(0))

        async with make_db() as db:
            await db.get_node_by_id(0)

        paths = [request.url.raw_path.decode("ascii") for request in fake_server.requests]
        assert paths == ["/", "/db/data/", "/db/data/node/0"]


# =============================================================================
# Test: Request headers
# =============================================================================


class TestRequestHeaders:
    """Tests for headers sent with every request."""

    @pytest.mark.asyncio
    async def test_json_headers(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        async with make_db() as db:
            await db.get_root()

        headers = fake_server.last_request().headers
        assert headers["Accept"] == "application/json"
        assert "X-Request-ID" not in headers

    @pytest.mark.asyncio
    async def test_correlation_id_forwarded(
        self, make_db: MakeDb, fake_server: FakeNeo4jServer
    ) -> None:
        set_correlation_id("req-123")
        try:
            async with make_db() as db:
                await db.get_root()
        finally:
            clear_correlation_id()

        assert fake_server.last_request().headers["X-Request-ID"] == "req-123"
