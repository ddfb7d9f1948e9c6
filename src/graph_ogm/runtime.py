"""Process-wide binding of the mapper to a graph store and search index.

Call :func:`start` once with the collaborators to use. Node wrappers are
cached per runtime by node reference, so loading the same node twice
yields the same wrapper object while it is referenced anywhere.

Open transactions with :meth:`Runtime.transaction` rather than on the
store alone, so that search index writes roll back with the graph.

Example:
    >>> runtime = start(InMemoryGraphStore())
    >>> with runtime.transaction():
    ...     person = Person(name="ada")
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.classes import node_classes
from graph_ogm.config import CLASSNAME_PROPERTY
from graph_ogm.exceptions import RuntimeNotStartedError
from graph_ogm.store.memory import InMemorySearchIndex

if TYPE_CHECKING:
    from graph_ogm.node import Node
    from graph_ogm.store.base import GraphStore, NodeRef, SearchIndex

logger = structlog.get_logger(__name__)


class Runtime:
    """A graph store, a search index and the wrapper cache over them."""

    def __init__(self, store: GraphStore, search_index: SearchIndex) -> None:
        """Initialize the runtime.

        Args:
            store: Graph store all nodes live in.
            search_index: Index receiving field updates.
        """
        self.store = store
        self.search_index = search_index
        self._wrappers: weakref.WeakValueDictionary[Any, Node] = weakref.WeakValueDictionary()

    @contextmanager
    def transaction(self) -> Iterator[Runtime]:
        """Open (or join) a transaction spanning the store and the search index.

        An exception leaving the scope rolls back both, so no index entry
        outlives the graph change it describes.

        Yields:
            The runtime itself.
        """
        with self.store.transaction(), self.search_index.transaction():
            yield self

    def remember(self, node: Node) -> None:
        """Cache a wrapper for its node reference."""
        self._wrappers[node.ref] = node

    def forget(self, node: Node) -> None:
        """Drop a wrapper from the cache."""
        self._wrappers.pop(node.ref, None)

    def cached(self, ref: NodeRef) -> Node | None:
        """Return the cached wrapper for ``ref``, if any."""
        return self._wrappers.get(ref)

    def load(self, ref: NodeRef, default_class: type[Node] | None = None) -> Node:
        """Return the wrapper for an existing node.

        The class is taken from the node's ``_classname`` property, then
        from ``default_class``, then falls back to the plain Node class.

        Args:
            ref: Reference of an existing node.
            default_class: Class to use when the node carries no class tag.

        Returns:
            The cached wrapper, or a new one.
        """
        wrapper = self._wrappers.get(ref)
        if wrapper is not None:
            return wrapper

        cls = node_classes.get(self.store.get_property(ref, CLASSNAME_PROPERTY))
        if cls is None:
            cls = default_class
        if cls is None:
            from graph_ogm.node import Node

            cls = Node
        return cls.wrap(ref, runtime=self)


_current: Runtime | None = None


def start(store: GraphStore, search_index: SearchIndex | None = None) -> Runtime:
    """Bind the process to a graph store.

    Args:
        store: Graph store to use.
        search_index: Search index to use; an in-memory one by default.

    Returns:
        The new runtime.
    """
    global _current
    _current = Runtime(store, search_index if search_index is not None else InMemorySearchIndex())
    logger.info(
        "Graph mapper started",
        store=type(store).__name__,
        search_index=type(_current.search_index).__name__,
    )
    return _current


def stop() -> None:
    """Unbind the current runtime."""
    global _current
    _current = None


def current() -> Runtime:
    """Return the active runtime.

    Raises:
        RuntimeNotStartedError: If start() has not been called.
    """
    if _current is None:
        raise RuntimeNotStartedError()
    return _current
