"""
neo4j-rest: async client for the Neo4j REST API.
"""

from neo4j_rest.core.logging import (
    clear_correlation_id,
    set_correlation_id,
    setup_structured_logging,
)
from neo4j_rest.graph import (
    GraphDatabase,
    Neo4jAmbiguousResponseError,
    Neo4jConfigurationError,
    Neo4jDatabaseError,
    Neo4jError,
    Neo4jNotFoundError,
    Neo4jQueryError,
    Neo4jTransportError,
    Node,
    Relationship,
)

__all__ = [
    "GraphDatabase",
    "Node",
    "Relationship",
    "Neo4jError",
    "Neo4jTransportError",
    "Neo4jNotFoundError",
    "Neo4jDatabaseError",
    "Neo4jQueryError",
    "Neo4jConfigurationError",
    "Neo4jAmbiguousResponseError",
    "set_correlation_id",
    "clear_correlation_id",
    "setup_structured_logging",
]
