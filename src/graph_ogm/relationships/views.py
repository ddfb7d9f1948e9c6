"""Lazy views over the edges of one node for one declared relationship.

A view holds no endpoints itself. Every iteration asks the graph store
again, so changes made between two iterations are always visible.

Example:
    >>> order.customer = alice            # has_one: replaces any edge
    >>> person.friends.append(bob)        # has_many: adds an edge
    >>> [f.name for f in person.friends]  # fresh traversal each time
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.exceptions import InvalidCardinality
from graph_ogm.indexing.indexer import relationship_changed
from graph_ogm.relationships.schema import Cardinality
from graph_ogm.store.base import Direction, EdgeEnd, other_end

if TYPE_CHECKING:
    from graph_ogm.node import Node
    from graph_ogm.relationships.schema import RelationshipSchema
    from graph_ogm.store.base import EdgeRef, GraphStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Relationship:
    """Handle on one stored edge between two mapped nodes.

    Attributes:
        ref: Store reference of the edge.
        start: Node the edge leaves.
        end: Node the edge enters.
        edge_type: Stored edge type.
    """

    ref: EdgeRef
    start: Node
    end: Node
    edge_type: str

    @classmethod
    def load(cls, node: Node, edge: EdgeRef) -> Relationship:
        """Build a handle for ``edge``, one of whose endpoints is ``node``."""
        runtime = node.runtime
        store = runtime.store
        start_ref = store.endpoint(edge, EdgeEnd.START)
        end_ref = store.endpoint(edge, EdgeEnd.END)
        start = node if start_ref == node.ref else runtime.load(start_ref)
        end = node if end_ref == node.ref else runtime.load(end_ref)
        return cls(edge, start, end, store.edge_type(edge))

    def other(self, node: Node) -> Node:
        """Return the endpoint that is not ``node``."""
        return self.end if self.start == node else self.start

    def __getitem__(self, name: str) -> Any:
        return self.start.runtime.store.get_property(self.ref, name)

    def __setitem__(self, name: str, value: Any) -> None:
        store = self.start.runtime.store
        if value is None:
            store.delete_property(self.ref, name)
        else:
            store.set_property(self.ref, name, value)

    def __contains__(self, name: object) -> bool:
        return self.start.runtime.store.get_property(self.ref, name) is not None

    def delete(self) -> None:
        """Delete the edge and reindex the endpoints that depend on it."""
        self.start.runtime.store.delete_edge(self.ref)
        logger.debug(
            "Deleted relationship",
            edge_type=self.edge_type,
            start=repr(self.start),
            end=repr(self.end),
        )
        relationship_changed(self.start, self.end, self.edge_type)


class RelationshipView:
    """Edges of one declared relationship (cardinality one or many).

    Args:
        node: The node owning the view.
        schema: The declared relationship.
    """

    def __init__(self, node: Node, schema: RelationshipSchema) -> None:
        self.node = node
        self.schema = schema.freeze()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.node!r}.{self.schema.name}>"

    @property
    def edge_type(self) -> str:
        return self.schema.edge_type

    def _store(self) -> GraphStore:
        return self.node.runtime.store

    def _load(self, ref: Any) -> Node:
        return self.node.runtime.load(ref, default_class=self.schema.target_class)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def edges(self) -> Iterator[Relationship]:
        """Yield a handle for every edge of this relationship."""
        for edge in self._store().edges(self.node.ref, self.edge_type, self.schema.direction):
            yield Relationship.load(self.node, edge)

    def each(self) -> Iterator[Node]:
        """Yield the related nodes, starting a fresh traversal."""
        store = self._store()
        for edge in store.edges(self.node.ref, self.edge_type, self.schema.direction):
            yield self._load(other_end(store, edge, self.node.ref))

    def __iter__(self) -> Iterator[Node]:
        return self.each()

    def __contains__(self, other: object) -> bool:
        return any(node == other for node in self.each())

    def first(self) -> Node | None:
        """Return the first related node, or None."""
        return next(self.each(), None)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def append(self, other: Node) -> Relationship:
        """Create one edge between the owner and ``other``.

        When the view mirrors a has_one declared on ``other``'s side,
        ``other``'s existing edge is replaced rather than added to.

        Args:
            other: Node to relate.

        Returns:
            Handle on the new edge.
        """
        far = self.schema.far_schema()
        if far is not None and far.cardinality is Cardinality.ONE:
            return RelationshipView(other, far).replace(self.node)
        if self.schema.direction is Direction.INCOMING:
            start, end = other, self.node
        else:
            start, end = self.node, other
        edge_type = self.edge_type
        edge = self._store().create_edge(start.ref, end.ref, edge_type)
        logger.debug(
            "Created relationship",
            name=self.schema.name,
            edge_type=edge_type,
            start=repr(start),
            end=repr(end),
        )
        relationship_changed(start, end, edge_type)
        return Relationship(edge, start, end, edge_type)

    def replace(self, other: Node | None) -> Relationship | None:
        """Make ``other`` the only related node (cardinality one only).

        ``replace(None)`` removes the existing edge.

        Raises:
            InvalidCardinality: If the relationship is not single-valued.
        """
        if self.schema.cardinality is not Cardinality.ONE:
            raise InvalidCardinality(self.schema.name, self.schema.cardinality.value, "replace")
        for relationship in list(self.edges()):
            relationship.delete()
        if other is None:
            return None
        return self.append(other)

    def remove(self, other: Node) -> int:
        """Delete every edge between the owner and ``other``.

        Returns:
            Number of edges deleted.
        """
        removed = 0
        for relationship in list(self.edges()):
            if relationship.other(self.node) == other:
                relationship.delete()
                removed += 1
        return removed
