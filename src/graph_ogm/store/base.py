"""Collaborator contracts consumed by the mapper.

The mapper never talks to a database directly. It goes through two
capabilities:

- GraphStore: node/edge storage, property access, traversal and the
  transactional scope mutations must run in.
- SearchIndex: field-level index put/remove, query by field and a
  scope that undoes writes on rollback.

References handed out by a store (node and edge refs) are opaque to the
mapper; they only need to be hashable and comparable.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any, Protocol, runtime_checkable

NodeRef = Hashable
EdgeRef = Hashable


class Direction(str, Enum):
    """Direction of an edge as seen from one of its endpoints."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"

    @property
    def reverse(self) -> Direction:
        """The same edge as seen from the other endpoint."""
        if self is Direction.OUTGOING:
            return Direction.INCOMING
        if self is Direction.INCOMING:
            return Direction.OUTGOING
        return Direction.BOTH


class EdgeEnd(str, Enum):
    """Which endpoint of an edge to resolve."""

    START = "start"
    END = "end"


@runtime_checkable
class GraphStore(Protocol):
    """Node and edge storage with transactional semantics.

    Mutating calls (create/delete/set) must raise NoActiveTransaction when
    no transaction() scope is active. Property calls accept both node
    and edge references.
    """

    def transaction(self) -> AbstractContextManager[Any]: ...

    def create_node(self) -> NodeRef: ...

    def delete_node(self, node: NodeRef) -> None: ...

    def get_property(self, ref: NodeRef | EdgeRef, name: str) -> Any: ...

    def set_property(self, ref: NodeRef | EdgeRef, name: str, value: Any) -> None: ...

    def delete_property(self, ref: NodeRef | EdgeRef, name: str) -> None: ...

    def properties(self, ref: NodeRef | EdgeRef) -> dict[str, Any]: ...

    def create_edge(self, start: NodeRef, end: NodeRef, edge_type: str) -> EdgeRef: ...

    def delete_edge(self, edge: EdgeRef) -> None: ...

    def edges(
        self,
        node: NodeRef,
        edge_type: str | None = None,
        direction: Direction = Direction.BOTH,
    ) -> Iterable[EdgeRef]: ...

    def endpoint(self, edge: EdgeRef, which: EdgeEnd) -> NodeRef: ...

    def edge_type(self, edge: EdgeRef) -> str: ...


@runtime_checkable
class SearchIndex(Protocol):
    """Field-level search index keyed by class tag and node reference.

    transaction() scopes index writes so that they roll back together
    with the graph store's transaction.
    """

    def transaction(self) -> AbstractContextManager[Any]: ...

    def put(self, class_tag: str, node: NodeRef, field: str, value: Any) -> None: ...

    def remove(self, class_tag: str, node: NodeRef, field: str) -> None: ...

    def query(self, class_tag: str, predicate: Mapping[str, Any]) -> Iterator[NodeRef]: ...


def other_end(store: GraphStore, edge: EdgeRef, node: NodeRef) -> NodeRef:
    """Return the endpoint of ``edge`` that is not ``node``.

    Self-loops return ``node`` itself.
    """
    start = store.endpoint(edge, EdgeEnd.START)
    if start != node:
        return start
    return store.endpoint(edge, EdgeEnd.END)
