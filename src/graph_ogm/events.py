"""Synchronous node lifecycle events.

Subscribers are plain callables taking the node wrapper. They run in
registration order, inside the caller's transaction, before the
triggering call returns. Exceptions raised by a subscriber propagate to
the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from graph_ogm.node import Node

logger = structlog.get_logger(__name__)

NodeCallback = Callable[["Node"], None]


class EventHandler:
    """Registry of node lifecycle subscribers."""

    def __init__(self) -> None:
        """Initialize with no subscribers."""
        self._created: list[NodeCallback] = []
        self._deleted: list[NodeCallback] = []

    def on_node_created(self, callback: NodeCallback) -> NodeCallback:
        """Subscribe to node creation. Usable as a decorator."""
        if callback not in self._created:
            self._created.append(callback)
        return callback

    def on_node_deleted(self, callback: NodeCallback) -> NodeCallback:
        """Subscribe to node deletion, fired before the node's edges are removed."""
        if callback not in self._deleted:
            self._deleted.append(callback)
        return callback

    def remove_listener(self, callback: NodeCallback) -> None:
        """Unsubscribe a callback from every event."""
        for listeners in (self._created, self._deleted):
            if callback in listeners:
                listeners.remove(callback)

    def node_created(self, node: Node) -> None:
        """Notify subscribers that ``node`` was created."""
        logger.debug("node_created", node=repr(node), listeners=len(self._created))
        for callback in list(self._created):
            callback(node)

    def node_deleted(self, node: Node) -> None:
        """Notify subscribers that ``node`` is being deleted."""
        logger.debug("node_deleted", node=repr(node), listeners=len(self._deleted))
        for callback in list(self._deleted):
            callback(node)


event_handler = EventHandler()

on_node_created = event_handler.on_node_created
on_node_deleted = event_handler.on_node_deleted
remove_listener = event_handler.remove_listener
