"""
Neo4j REST health checks.

Reachability is verified by resolving the discovery root and service
map, which every other operation depends on.
"""

import time
from typing import Any

from neo4j_rest.core.config import Settings
from neo4j_rest.graph.database import GraphDatabase
from neo4j_rest.graph.exceptions import (
    Neo4jConfigurationError,
    Neo4jDatabaseError,
    Neo4jTransportError,
)


def get_graph_database(settings: Settings) -> GraphDatabase:
    """
    Create a GraphDatabase for the configured server.

    Raises:
        Neo4jConfigurationError: If the URL is not http(s)
    """
    if not settings.neo4j_url.startswith(("http://", "https://")):
        raise Neo4jConfigurationError(f"Invalid Neo4j REST URL scheme: {settings.neo4j_url}")
    return GraphDatabase(settings.neo4j_url, settings=settings)


async def check_neo4j_health(settings: Settings) -> bool:
    """
    Check if the Neo4j REST API is healthy and reachable.

    Returns:
        True if the service map could be resolved, False otherwise
    """
    try:
        async with get_graph_database(settings) as db:
            await db.get_services()
        return True
    except Exception:
        return False


async def check_neo4j_health_detailed(settings: Settings) -> dict[str, Any]:
    """
    Check Neo4j health with detailed information.

    Returns:
        Dictionary with status, url, and version/latency or error details
    """
    start_time = time.time()
    try:
        async with get_graph_database(settings) as db:
            version = await db.get_version()
            services = await db.get_services()
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "url": settings.neo4j_url,
            "neo4j_version": services.get("neo4j_version", str(version)),
            "latency_ms": round(latency_ms, 2),
        }
    except Neo4jTransportError as e:
        return {
            "status": "unhealthy",
            "url": settings.neo4j_url,
            "error": f"Service unavailable: {e}",
        }
    except Neo4jDatabaseError as e:
        return {
            "status": "unhealthy",
            "url": settings.neo4j_url,
            "error": f"Unexpected response ({e.status_code}): {e}",
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "url": settings.neo4j_url,
            "error": str(e),
        }
