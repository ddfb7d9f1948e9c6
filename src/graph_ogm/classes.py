"""Lookup of node classes by name.

The class name is what gets persisted in ``_classname`` and what
forward references in relationship declarations use, e.g.
``has_one("address").to("Address")`` before ``Address`` exists.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from graph_ogm.exceptions import UnresolvedTargetClass

if TYPE_CHECKING:
    from graph_ogm.node import Node

logger = structlog.get_logger(__name__)


class NodeClassRegistry:
    """Maps class names to node classes."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._classes: dict[str, type[Node]] = {}

    def register(self, cls: type[Node]) -> None:
        """Register a node class under its ``__name__``.

        Registering a different class under an existing name replaces the
        previous entry.
        """
        name = cls.__name__
        previous = self._classes.get(name)
        if previous is not None and previous is not cls:
            logger.warning(
                "Node class redefined",
                name=name,
                previous=previous.__module__,
                current=cls.__module__,
            )
        self._classes[name] = cls

    def get(self, name: str | None) -> type[Node] | None:
        """Return the class registered as ``name``, or None."""
        if name is None:
            return None
        return self._classes.get(name)

    def resolve(self, target: type[Node] | str) -> type[Node]:
        """Resolve a class or class name to a class.

        Raises:
            UnresolvedTargetClass: If a name has not been registered.
        """
        if not isinstance(target, str):
            return target
        cls = self._classes.get(target)
        if cls is None:
            raise UnresolvedTargetClass(target)
        return cls

    def __contains__(self, name: object) -> bool:
        return name in self._classes


node_classes = NodeClassRegistry()
