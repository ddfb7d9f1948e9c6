"""Breadth-first traversals starting at one node.

Example:
    >>> [p.name for p in person.traverse().outgoing("friends").depth(2)]
    >>> list(person.traverse().incoming("follows").filter(lambda n: "vip" in n))
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from graph_ogm.store.base import Direction, other_end

if TYPE_CHECKING:
    from graph_ogm.node import Node


class Traversal:
    """A lazily evaluated walk over the graph from ``start``.

    Each node reached is yielded once, in breadth-first order, and the
    start node itself is never yielded. Without any ``outgoing``,
    ``incoming`` or ``both`` call every outgoing edge is followed.
    Relationship names declared on the start node's class are translated
    to their stored edge type; other names are used as edge types.

    Args:
        start: Node the walk begins at.
    """

    def __init__(self, start: Node) -> None:
        self.start = start
        self._steps: list[tuple[str | None, Direction]] = []
        self._depth: int | None = 1
        self._filter: Callable[[Node], bool] | None = None

    def __repr__(self) -> str:
        return f"<Traversal from {self.start!r} depth={self._depth}>"

    def _follow(self, names: tuple[str, ...], direction: Direction) -> Traversal:
        if not names:
            self._steps.append((None, direction))
        for name in names:
            self._steps.append((self._edge_type(name), direction))
        return self

    def _edge_type(self, name: str) -> str:
        schema = type(self.start).relationships().get(name)
        if schema is not None and schema.stores_edges:
            return schema.edge_type
        return name

    def outgoing(self, *names: str) -> Traversal:
        """Follow outgoing edges of these types (all types when none are given)."""
        return self._follow(names, Direction.OUTGOING)

    def incoming(self, *names: str) -> Traversal:
        """Follow incoming edges of these types (all types when none are given)."""
        return self._follow(names, Direction.INCOMING)

    def both(self, *names: str) -> Traversal:
        """Follow edges of these types in either direction."""
        return self._follow(names, Direction.BOTH)

    def depth(self, levels: int | None) -> Traversal:
        """Stop after ``levels`` edges; None walks everything reachable."""
        self._depth = levels
        return self

    def filter(self, predicate: Callable[[Node], bool]) -> Traversal:
        """Only yield nodes for which ``predicate`` is true.

        Nodes filtered out are still walked through.
        """
        self._filter = predicate
        return self

    def __iter__(self) -> Iterator[Node]:
        runtime = self.start.runtime
        store = runtime.store
        steps = self._steps or [(None, Direction.OUTGOING)]
        seen = {self.start.ref}
        queue: deque[tuple[Node, int]] = deque([(self.start, 0)])
        while queue:
            node, level = queue.popleft()
            if self._depth is not None and level >= self._depth:
                continue
            for edge_type, direction in steps:
                for edge in store.edges(node.ref, edge_type, direction):
                    ref = other_end(store, edge, node.ref)
                    if ref in seen:
                        continue
                    seen.add(ref)
                    found = runtime.load(ref)
                    queue.append((found, level + 1))
                    if self._filter is None or self._filter(found):
                        yield found
