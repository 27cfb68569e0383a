"""
Typed wrappers for graph entities returned by the REST API.

A JSON object is a graph entity when it carries a ``self`` URL; a
``type`` field additionally marks it as a relationship. classify() is
the single place that decision is made, shared by entity construction
and by query result mapping.

Construction never performs I/O. Entities keep a back-reference to the
GraphDatabase they were fetched from, which is excluded from equality:
two fetches of the same remote entity compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from neo4j_rest.graph.database import GraphDatabase

SELF_FIELD = "self"
TYPE_FIELD = "type"
DATA_FIELD = "data"


class EntityKind(Enum):
    """Closed set of shapes a JSON value from the server can take."""

    NODE = "node"
    RELATIONSHIP = "relationship"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def classify(value: Any) -> EntityKind:
    """Classify a decoded JSON value.

    Objects without a self URL (maps returned by a query, for instance)
    are scalars as far as entity resolution is concerned.
    """
    if isinstance(value, dict) and SELF_FIELD in value:
        if TYPE_FIELD in value:
            return EntityKind.RELATIONSHIP
        return EntityKind.NODE
    if isinstance(value, list):
        return EntityKind.SEQUENCE
    return EntityKind.SCALAR


def _id_from_url(url: str | None) -> int | None:
    if not url:
        return None
    tail = url.rstrip("/").rpartition("/")[2]
    return int(tail) if tail.isdigit() else None


@dataclass
class Node:
    """A graph vertex identified by its self URL.

    Attributes:
        url: The node's self URL, used for every later operation on it
        data: The node's property map
        db: The GraphDatabase the node was fetched from
    """

    url: str | None
    data: dict[str, Any] = field(default_factory=dict)
    db: GraphDatabase | None = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> int | None:
        """Server-assigned ID, parsed from the self URL."""
        return _id_from_url(self.url)

    @property
    def exists(self) -> bool:
        return self.url is not None


@dataclass
class Relationship:
    """A graph edge between two nodes.

    start_url and end_url are back-references to the nodes, not owned
    Node instances; fetch them through the database when needed.
    """

    url: str | None
    type: str
    start_url: str | None = None
    end_url: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    db: GraphDatabase | None = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> int | None:
        return _id_from_url(self.url)

    @property
    def start_id(self) -> int | None:
        return _id_from_url(self.start_url)

    @property
    def end_id(self) -> int | None:
        return _id_from_url(self.end_url)

    @property
    def exists(self) -> bool:
        return self.url is not None


def entity_from_json(
    data: dict[str, Any],
    db: GraphDatabase | None = None,
) -> Node | Relationship:
    """Build a Node or Relationship from its JSON representation.

    Args:
        data: Entity JSON as returned by the server
        db: Owning database, kept as a back-reference

    Returns:
        Relationship if the object has a type field, else Node

    Raises:
        ValueError: If the object is not entity-shaped (no self URL)
    """
    kind = classify(data)
    properties = dict(data.get(DATA_FIELD) or {})
    if kind is EntityKind.RELATIONSHIP:
        return Relationship(
            url=data[SELF_FIELD],
            type=data[TYPE_FIELD],
            start_url=data.get("start"),
            end_url=data.get("end"),
            data=properties,
            db=db,
        )
    if kind is EntityKind.NODE:
        return Node(url=data[SELF_FIELD], data=properties, db=db)
    raise ValueError(f"Not a graph entity: {data!r}")


def transform_value(
    value: Any,
    db: GraphDatabase | None = None,
    *,
    _nested: bool = False,
) -> Any:
    """Turn entity-shaped JSON inside a result value into entities.

    Entity objects become Node/Relationship; a list is transformed
    element-wise, one level deep only, so lists inside lists are
    returned as they are. Everything else passes through untouched.
    The input is never mutated.
    """
    kind = classify(value)
    if kind is EntityKind.NODE or kind is EntityKind.RELATIONSHIP:
        return entity_from_json(value, db)
    if kind is EntityKind.SEQUENCE and not _nested:
        return [transform_value(item, db, _nested=True) for item in value]
    return value
