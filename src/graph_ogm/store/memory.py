"""In-process GraphStore and SearchIndex implementations.

Both keep their state in plain dictionaries. InMemoryGraphStore provides
a snapshot-based transaction: entering the outermost scope copies the
state, leaving it with an exception restores the copy. Nested scopes join
the enclosing one.

Example:
    >>> store = InMemoryGraphStore()
    >>> with store.transaction():
    ...     a = store.create_node()
    ...     b = store.create_node()
    ...     store.create_edge(a, b, "knows")
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog

from graph_ogm.exceptions import NoActiveTransaction
from graph_ogm.store.base import Direction, EdgeEnd

logger = structlog.get_logger(__name__)


@dataclass
class _Edge:
    start: int
    end: int
    edge_type: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class _State:
    nodes: dict[int, dict[str, Any]] = field(default_factory=dict)
    edges: dict[int, _Edge] = field(default_factory=dict)
    # node id -> edge ids, insertion ordered
    outgoing: dict[int, dict[int, None]] = field(default_factory=dict)
    incoming: dict[int, dict[int, None]] = field(default_factory=dict)


class InMemoryGraphStore:
    """Dictionary-backed graph store.

    Node references are ``("node", n)`` tuples and edge references are
    ``("edge", n)`` tuples, so the two never compare equal.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._state = _State()
        self._ids = itertools.count(1)
        self._depth = 0

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction scope is active."""
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[InMemoryGraphStore]:
        """Open a transactional scope, or join the active one.

        Yields:
            The store itself.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy(self._state)
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._state = snapshot
            logger.debug("Transaction rolled back")
            raise
        finally:
            self._depth = 0

    def _require_transaction(self, operation: str) -> None:
        if not self._depth:
            raise NoActiveTransaction(operation)

    # -------------------------------------------------------------------------
    # Nodes and properties
    # -------------------------------------------------------------------------

    def create_node(self) -> tuple[str, int]:
        self._require_transaction("create_node")
        node_id = next(self._ids)
        self._state.nodes[node_id] = {}
        self._state.outgoing[node_id] = {}
        self._state.incoming[node_id] = {}
        return ("node", node_id)

    def delete_node(self, node: tuple[str, int]) -> None:
        self._require_transaction("delete_node")
        node_id = self._node_id(node)
        if self._state.outgoing[node_id] or self._state.incoming[node_id]:
            msg = f"Node {node} still has relationships"
            raise ValueError(msg)
        del self._state.nodes[node_id]
        del self._state.outgoing[node_id]
        del self._state.incoming[node_id]

    def has_node(self, node: tuple[str, int]) -> bool:
        """Whether the node exists."""
        return node[0] == "node" and node[1] in self._state.nodes

    def _props(self, ref: tuple[str, int]) -> dict[str, Any]:
        kind, ident = ref
        if kind == "node":
            return self._state.nodes[ident]
        return self._state.edges[ident].properties

    def get_property(self, ref: tuple[str, int], name: str) -> Any:
        return self._props(ref).get(name)

    def set_property(self, ref: tuple[str, int], name: str, value: Any) -> None:
        self._require_transaction("set_property")
        self._props(ref)[name] = value

    def delete_property(self, ref: tuple[str, int], name: str) -> None:
        self._require_transaction("delete_property")
        self._props(ref).pop(name, None)

    def properties(self, ref: tuple[str, int]) -> dict[str, Any]:
        return dict(self._props(ref))

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def create_edge(
        self, start: tuple[str, int], end: tuple[str, int], edge_type: str
    ) -> tuple[str, int]:
        self._require_transaction("create_edge")
        start_id = self._node_id(start)
        end_id = self._node_id(end)
        edge_id = next(self._ids)
        self._state.edges[edge_id] = _Edge(start_id, end_id, edge_type)
        self._state.outgoing[start_id][edge_id] = None
        self._state.incoming[end_id][edge_id] = None
        return ("edge", edge_id)

    def delete_edge(self, edge: tuple[str, int]) -> None:
        self._require_transaction("delete_edge")
        edge_id = edge[1]
        stored = self._state.edges.pop(edge_id)
        del self._state.outgoing[stored.start][edge_id]
        del self._state.incoming[stored.end][edge_id]

    def edges(
        self,
        node: tuple[str, int],
        edge_type: str | None = None,
        direction: Direction = Direction.BOTH,
    ) -> list[tuple[str, int]]:
        """Return a snapshot of matching edges, so callers may mutate while iterating."""
        node_id = self._node_id(node)
        outgoing = self._state.outgoing[node_id]
        incoming = self._state.incoming[node_id]
        if direction is Direction.OUTGOING:
            edge_ids = list(outgoing)
        elif direction is Direction.INCOMING:
            edge_ids = list(incoming)
        else:
            # self-loops appear in both maps
            edge_ids = list(outgoing) + [e for e in incoming if e not in outgoing]
        return [
            ("edge", e)
            for e in edge_ids
            if edge_type is None or self._state.edges[e].edge_type == edge_type
        ]

    def endpoint(self, edge: tuple[str, int], which: EdgeEnd) -> tuple[str, int]:
        stored = self._state.edges[edge[1]]
        return ("node", stored.start if which is EdgeEnd.START else stored.end)

    def edge_type(self, edge: tuple[str, int]) -> str:
        return self._state.edges[edge[1]].edge_type

    def _node_id(self, node: tuple[str, int]) -> int:
        kind, node_id = node
        if kind != "node" or node_id not in self._state.nodes:
            msg = f"Unknown node reference: {node!r}"
            raise KeyError(msg)
        return node_id


class InMemorySearchIndex:
    """Dictionary-backed search index.

    Documents are stored per class tag as ``{node_ref: {field: value}}``.
    A query matches a document when every predicate field matches: plain
    values by equality, list values by membership. Writes made inside
    transaction() are rolled back with it.
    """

    def __init__(self) -> None:
        """Initialize an empty index."""
        self._documents: dict[str, dict[Any, dict[str, Any]]] = {}
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[InMemorySearchIndex]:
        """Open a scope whose writes are undone if it exits with an exception.

        Nested scopes join the enclosing one.

        Yields:
            The index itself.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy(self._documents)
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._documents = snapshot
            logger.debug("Search index changes rolled back")
            raise
        finally:
            self._depth = 0

    def put(self, class_tag: str, node: Any, field: str, value: Any) -> None:
        self._documents.setdefault(class_tag, {}).setdefault(node, {})[field] = value

    def remove(self, class_tag: str, node: Any, field: str) -> None:
        document = self._documents.get(class_tag, {}).get(node)
        if document is None:
            return
        document.pop(field, None)
        if not document:
            del self._documents[class_tag][node]

    def query(self, class_tag: str, predicate: Mapping[str, Any]) -> Iterator[Any]:
        for node, document in list(self._documents.get(class_tag, {}).items()):
            if all(self._matches(document, name, value) for name, value in predicate.items()):
                yield node

    def document(self, class_tag: str, node: Any) -> dict[str, Any]:
        """Return a copy of the indexed fields of one node."""
        return dict(self._documents.get(class_tag, {}).get(node, {}))

    @staticmethod
    def _matches(document: dict[str, Any], name: str, value: Any) -> bool:
        if name not in document:
            return False
        stored = document[name]
        if isinstance(stored, (list, tuple, set, frozenset)):
            return value in stored
        return stored == value
