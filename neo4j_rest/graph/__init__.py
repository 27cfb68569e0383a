# Graph module for the Neo4j REST API
"""
Graph layer for Neo4j REST operations including:
- GraphDatabase: facade for discovery, entity lookup, indexes and queries
- ServiceResolver: cached, single-flight service discovery
- Node / Relationship: typed entity wrappers
"""

from neo4j_rest.graph.database import GraphDatabase, GraphDatabaseProtocol
from neo4j_rest.graph.entities import (
    EntityKind,
    Node,
    Relationship,
    classify,
    entity_from_json,
    transform_value,
)
from neo4j_rest.graph.exceptions import (
    Neo4jAmbiguousResponseError,
    Neo4jConfigurationError,
    Neo4jDatabaseError,
    Neo4jError,
    Neo4jNotFoundError,
    Neo4jQueryError,
    Neo4jTransportError,
    adapt_error,
    adapt_errors,
)
from neo4j_rest.graph.services import CacheState, ServiceResolver, SingleFlight

__all__ = [
    # Exceptions
    "Neo4jError",
    "Neo4jTransportError",
    "Neo4jNotFoundError",
    "Neo4jDatabaseError",
    "Neo4jQueryError",
    "Neo4jConfigurationError",
    "Neo4jAmbiguousResponseError",
    "adapt_error",
    "adapt_errors",
    # Database
    "GraphDatabase",
    "GraphDatabaseProtocol",
    # Discovery
    "CacheState",
    "ServiceResolver",
    "SingleFlight",
    # Entities
    "EntityKind",
    "Node",
    "Relationship",
    "classify",
    "entity_from_json",
    "transform_value",
]
