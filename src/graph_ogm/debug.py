"""Console rendering of a node and its neighbourhood.

Example:
    >>> print_node(company, depth=2)
    <Company ('node', 1)> {name: 'acme'}
    ├── -[employees]-> <Employee ('node', 4)> {name: 'e3'}
    │   └── -[employees#next]-> <Employee ('node', 3)> {name: 'e2'}
    ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from graph_ogm.config import CLASSNAME_PROPERTY
from graph_ogm.store.base import Direction

if TYPE_CHECKING:
    from graph_ogm.node import Node


def _label(node: Node) -> str:
    props = {k: v for k, v in node.props().items() if k != CLASSNAME_PROPERTY}
    body = ", ".join(f"{k}: {v!r}" for k, v in sorted(props.items()))
    return f"[bold]{escape(repr(node))}[/bold] {{{escape(body)}}}"


def node_tree(node: Node, depth: int = 1, direction: Direction = Direction.OUTGOING) -> Tree:
    """Build a rich Tree of ``node`` and the nodes reachable within ``depth`` edges.

    Args:
        node: Node at the root of the tree.
        depth: How many edges to follow.
        direction: Which edges to follow.

    Returns:
        The tree, ready to print.
    """
    tree = Tree(_label(node))
    _add_children(tree, node, depth, direction, {node})
    return tree


def _add_children(
    tree: Tree, node: Node, depth: int, direction: Direction, seen: set[Node]
) -> None:
    if depth <= 0:
        return
    for relationship in node.rels(direction=direction):
        other = relationship.other(node)
        arrow = "->" if relationship.start == node else "<-"
        branch = tree.add(f"-\\[{escape(relationship.edge_type)}]{arrow} {_label(other)}")
        if other not in seen:
            _add_children(branch, other, depth - 1, direction, seen | {other})


def print_node(
    node: Node,
    depth: int = 1,
    direction: Direction = Direction.OUTGOING,
    console: Console | None = None,
) -> None:
    """Print ``node`` and its neighbourhood to the console."""
    (console or Console()).print(node_tree(node, depth, direction))
