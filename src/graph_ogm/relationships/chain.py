"""Primitive walks over the ordered-list edge chain.

An ordered list of edge type ``T`` owned by node ``O`` looks like::

    O -[T]-> A -[T#next]-> B -[T#next]-> C

These helpers work on raw store references so that both the list views
and the indexer can use them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from graph_ogm.config import list_link_type
from graph_ogm.store.base import Direction, EdgeEnd

if TYPE_CHECKING:
    from graph_ogm.store.base import EdgeRef, GraphStore, NodeRef


def first_edge(
    store: GraphStore, node: NodeRef, edge_type: str, direction: Direction
) -> EdgeRef | None:
    """Return the first matching edge of ``node``, or None."""
    for edge in store.edges(node, edge_type, direction):
        return edge
    return None


def head_edge(store: GraphStore, owner: NodeRef, edge_type: str) -> EdgeRef | None:
    """Return the edge from the owner to the first item."""
    return first_edge(store, owner, edge_type, Direction.OUTGOING)


def next_edge(store: GraphStore, item: NodeRef, edge_type: str) -> EdgeRef | None:
    """Return the link edge from ``item`` to its successor."""
    return first_edge(store, item, list_link_type(edge_type), Direction.OUTGOING)


def prev_edge(store: GraphStore, item: NodeRef, edge_type: str) -> EdgeRef | None:
    """Return the link edge from the predecessor to ``item``."""
    return first_edge(store, item, list_link_type(edge_type), Direction.INCOMING)


def find_list_owner(store: GraphStore, item: NodeRef, edge_type: str) -> NodeRef | None:
    """Walk back from ``item`` to the head and return the list owner.

    Returns None when ``item`` is not in a list of this edge type. Runs
    in time proportional to the item's position.
    """
    current = item
    seen = {current}
    while True:
        link = prev_edge(store, current, edge_type)
        if link is None:
            break
        current = store.endpoint(link, EdgeEnd.START)
        if current in seen:
            return None
        seen.add(current)
    head = first_edge(store, current, edge_type, Direction.INCOMING)
    if head is None:
        return None
    return store.endpoint(head, EdgeEnd.START)
