"""
Pytest configuration and fixtures for neo4j-rest tests.
"""

from collections.abc import Callable

import httpx
import pytest

from neo4j_rest.core.config import Settings
from neo4j_rest.graph.database import GraphDatabase
from tests.fakes import BASE_URL, FakeNeo4jServer


@pytest.fixture
def settings() -> Settings:
    """Provide test settings pointing at the fake server."""
    return Settings(
        neo4j_url=BASE_URL,
        neo4j_user=None,
        neo4j_password=None,
        neo4j_timeout=5.0,
    )


@pytest.fixture
def fake_server() -> FakeNeo4jServer:
    """In-memory REST server with a default 1.8 service map."""
    return FakeNeo4jServer()


@pytest.fixture
def make_db(
    settings: Settings, fake_server: FakeNeo4jServer
) -> Callable[[], GraphDatabase]:
    """Factory for GraphDatabase instances wired to fake_server."""

    def _make() -> GraphDatabase:
        client = httpx.AsyncClient(transport=fake_server.transport())
        return GraphDatabase(BASE_URL, settings=settings, http_client=client)

    return _make
