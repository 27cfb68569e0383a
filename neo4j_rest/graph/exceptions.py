"""
Custom exceptions for the graph module.

Exception naming avoids shadowing Python builtins (ConnectionError,
LookupError): every error raised across the client boundary is a
Neo4jError subclass. adapt_error()/adapt_errors() normalise httpx
failures, undecodable bodies and anything unexpected into this taxonomy.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx


class Neo4jError(Exception):
    """Base exception for all Neo4j-related errors."""

    pass


class Neo4jTransportError(Neo4jError):
    """Raised when the HTTP transport fails (connect, timeout, protocol).

    Named Neo4jTransportError to avoid shadowing Python's
    built-in ConnectionError.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize with message and optional cause.

        Args:
            message: Human-readable error description
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.cause = cause


class Neo4jNotFoundError(Neo4jError):
    """Raised when no entity exists at the requested URL (HTTP 404)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class Neo4jDatabaseError(Neo4jError):
    """Raised when the server answers with an unexpected status or body.

    Carries the raw response so callers can inspect the server's
    own error payload.
    """

    def __init__(
        self,
        message: str,
        response: httpx.Response | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with message, raw response, and optional cause.

        Args:
            message: Human-readable error description
            response: The HTTP response that signalled the failure
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.response = response
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        """HTTP status of the failed response, if any."""
        return self.response.status_code if self.response is not None else None

    @property
    def body(self) -> Any:
        """Decoded JSON body of the failed response, or its text."""
        if self.response is None:
            return None
        try:
            return self.response.json()
        except ValueError:
            return self.response.text

    @classmethod
    def from_response(
        cls, response: httpx.Response, **kwargs: Any
    ) -> Neo4jDatabaseError:
        """Build an error describing an unexpected response."""
        return cls(
            f"Unexpected {response.status_code} response from "
            f"{response.request.method} {response.request.url}",
            response=response,
            **kwargs,
        )


class Neo4jQueryError(Neo4jDatabaseError):
    """Raised when a Cypher query or Gremlin script fails server-side.

    This includes syntax errors, unknown identifiers and other
    execution failures reported with an error status.
    """

    def __init__(
        self,
        message: str,
        query: str | None = None,
        response: httpx.Response | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, response=response, cause=cause)
        self.query = query


class Neo4jConfigurationError(Neo4jError):
    """Raised when the server does not advertise a required capability.

    E.g. the Cypher plugin is not installed, or the service map has
    no node collection URL.
    """

    pass


class Neo4jAmbiguousResponseError(Neo4jError):
    """Raised when a success status actually signals a failure.

    Some servers answer invalid queries with 204 No Content instead
    of an error status; the query text is kept verbatim for diagnostics.
    """

    def __init__(self, message: str, query: str) -> None:
        super().__init__(message)
        self.query = query


def adapt_error(exc: Exception, context: str) -> Neo4jError:
    """Map an arbitrary failure onto the Neo4jError taxonomy.

    Args:
        exc: The exception raised by I/O or decoding
        context: Short description of the operation, used in the message

    Returns:
        exc itself if already a Neo4jError, otherwise a new adapted error
    """
    if isinstance(exc, Neo4jError):
        return exc
    if isinstance(exc, httpx.TransportError):
        return Neo4jTransportError(f"{context}: transport failure: {exc}", cause=exc)
    if isinstance(exc, httpx.HTTPStatusError):
        return Neo4jDatabaseError(
            f"{context}: {exc}", response=exc.response, cause=exc
        )
    if isinstance(exc, json.JSONDecodeError):
        return Neo4jDatabaseError(f"{context}: invalid JSON in response", cause=exc)
    return Neo4jDatabaseError(f"{context}: unexpected error: {exc}", cause=exc)


@contextmanager
def adapt_errors(context: str) -> Iterator[None]:
    """Re-raise any failure inside the block as a Neo4jError.

    Usage:
        with adapt_errors("get_node"):
            response = await http.get(url)
    """
    try:
        yield
    except Neo4jError:
        raise
    except Exception as e:
        raise adapt_error(e, context) from e
