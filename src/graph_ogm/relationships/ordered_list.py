"""Ordered lists stored as a linked chain of edges.

``Company.has_list("employees", counter=True)`` stores::

    company -[employees]-> e3 -[employees#next]-> e2 -[employees#next]-> e1

plus an ``employees_size`` counter on the company. New items go in front
in constant time. Deleting an item re-links its neighbours, repoints the
head edge when needed and decrements the counter.

Lists repair themselves when a member node is deleted anywhere in the
application: the first has_list declaration subscribes the process-wide
ListMaintainer to node deletion events.

An item belongs to at most one list of a given edge type.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.config import list_counter_property, list_link_type
from graph_ogm.events import event_handler
from graph_ogm.exceptions import AlreadyInList, CounterNotEnabled, NotInList
from graph_ogm.indexing.indexer import relationship_changed
from graph_ogm.relationships.chain import find_list_owner, head_edge, next_edge, prev_edge
from graph_ogm.relationships.schema import Cardinality
from graph_ogm.relationships.views import RelationshipView
from graph_ogm.store.base import EdgeEnd

if TYPE_CHECKING:
    from graph_ogm.node import Node
    from graph_ogm.relationships.schema import RelationshipSchema

logger = structlog.get_logger(__name__)


class OrderedListView(RelationshipView):
    """A has_list relationship seen from its owner.

    Example:
        >>> company.employees.push_front(e1).push_front(e2)
        >>> [e.name for e in company.employees]
        ['e2', 'e1']
        >>> company.employees.size()
        2
    """

    def _load(self, ref: Any) -> Node:
        default = self.schema.target_class or list_maintainer.item_class(self.edge_type)
        return self.node.runtime.load(ref, default_class=default)

    @property
    def _counter_property(self) -> str:
        return list_counter_property(self.edge_type)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def head(self) -> Node | None:
        """Return the first item, or None for an empty list."""
        store = self._store()
        edge = head_edge(store, self.node.ref, self.edge_type)
        if edge is None:
            return None
        return self._load(store.endpoint(edge, EdgeEnd.END))

    def each(self) -> Iterator[Node]:
        """Yield the items from head to tail, starting a fresh traversal."""
        store = self._store()
        edge_type = self.edge_type
        edge = head_edge(store, self.node.ref, edge_type)
        while edge is not None:
            ref = store.endpoint(edge, EdgeEnd.END)
            yield self._load(ref)
            edge = next_edge(store, ref, edge_type)

    def __contains__(self, item: object) -> bool:
        ref = getattr(item, "ref", None)
        if ref is None:
            return False
        return find_list_owner(self._store(), ref, self.edge_type) == self.node.ref

    def next_of(self, item: Node) -> Node | None:
        """Return the item after ``item``, or None at the tail."""
        store = self._store()
        edge = next_edge(store, item.ref, self.edge_type)
        return None if edge is None else self._load(store.endpoint(edge, EdgeEnd.END))

    def prev_of(self, item: Node) -> Node | None:
        """Return the item before ``item``, or None at the head."""
        store = self._store()
        edge = prev_edge(store, item.ref, self.edge_type)
        return None if edge is None else self._load(store.endpoint(edge, EdgeEnd.START))

    def size(self) -> int:
        """Return the number of items from the maintained counter.

        Raises:
            CounterNotEnabled: If the list was declared without a counter.
        """
        if not self.schema.counter:
            raise CounterNotEnabled(self.schema.name)
        return self._store().get_property(self.node.ref, self._counter_property) or 0

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def push_front(self, item: Node) -> OrderedListView:
        """Insert ``item`` as the new head.

        An item already in this list is moved to the front.

        Returns:
            The view itself, for chaining.

        Raises:
            AlreadyInList: If ``item`` is in another list of the same edge
                type, or still carries links of a list whose owner is gone.
        """
        store = self._store()
        edge_type = self.edge_type
        owner_ref = find_list_owner(store, item.ref, edge_type)
        if owner_ref == self.node.ref:
            self.delete(item)
        elif owner_ref is not None:
            owner = self.node.runtime.load(owner_ref, default_class=self.schema.owner)
            raise AlreadyInList(self.schema.name, item, owner)
        elif (
            next_edge(store, item.ref, edge_type) is not None
            or prev_edge(store, item.ref, edge_type) is not None
        ):
            raise AlreadyInList(self.schema.name, item)

        old_head = head_edge(store, self.node.ref, edge_type)
        if old_head is not None:
            old_ref = store.endpoint(old_head, EdgeEnd.END)
            store.delete_edge(old_head)
            store.create_edge(item.ref, old_ref, list_link_type(edge_type))
        store.create_edge(self.node.ref, item.ref, edge_type)
        self._adjust_counter(1)
        logger.debug(
            "List push_front", name=self.schema.name, owner=repr(self.node), item=repr(item)
        )
        relationship_changed(self.node, item, edge_type)
        return self

    def append(self, other: Node) -> OrderedListView:
        """Alias of push_front; lists grow at the head."""
        return self.push_front(other)

    def delete(self, item: Node) -> None:
        """Remove ``item`` from the list and repair the chain.

        Args:
            item: Any item of the list, including head and tail.

        Raises:
            NotInList: If ``item`` is not in this list.
        """
        store = self._store()
        edge_type = self.edge_type
        if find_list_owner(store, item.ref, edge_type) != self.node.ref:
            raise NotInList(self.schema.name, item)

        following = next_edge(store, item.ref, edge_type)
        next_ref = None
        if following is not None:
            next_ref = store.endpoint(following, EdgeEnd.END)
            store.delete_edge(following)

        preceding = prev_edge(store, item.ref, edge_type)
        if preceding is None:
            store.delete_edge(head_edge(store, self.node.ref, edge_type))
            if next_ref is not None:
                store.create_edge(self.node.ref, next_ref, edge_type)
        else:
            prev_ref = store.endpoint(preceding, EdgeEnd.START)
            store.delete_edge(preceding)
            if next_ref is not None:
                store.create_edge(prev_ref, next_ref, list_link_type(edge_type))

        self._adjust_counter(-1)
        logger.debug(
            "List delete", name=self.schema.name, owner=repr(self.node), item=repr(item)
        )
        relationship_changed(self.node, item, edge_type)

    remove = delete

    def _adjust_counter(self, delta: int) -> None:
        if not self.schema.counter:
            return
        store = self._store()
        current = store.get_property(self.node.ref, self._counter_property) or 0
        store.set_property(self.node.ref, self._counter_property, max(0, current + delta))


class ListMaintainer:
    """Removes deleted nodes from every declared list they belong to."""

    def __init__(self) -> None:
        """Initialize with no watched lists."""
        self._lists: list[RelationshipSchema] = []
        self._item_classes: dict[str, type[Node]] = {}
        self._subscribed = False

    def watch(self, schema: RelationshipSchema) -> None:
        """Start repairing lists declared by ``schema``."""
        if schema not in self._lists:
            self._lists.append(schema)
        if not self._subscribed:
            event_handler.on_node_deleted(self.on_node_deleted)
            self._subscribed = True

    def register_item_class(self, edge_type: str, cls: type[Node]) -> None:
        """Record the class to load for items of lists of ``edge_type``."""
        self._item_classes[edge_type] = cls

    def item_class(self, edge_type: str) -> type[Node] | None:
        """Return the class registered by belongs_to_list, or None."""
        return self._item_classes.get(edge_type)

    def on_node_deleted(self, node: Node) -> None:
        """Unlink ``node`` from each list holding it, before it is deleted."""
        runtime = node.runtime
        by_edge_type: dict[str, RelationshipSchema] = {}
        for schema in self._lists:
            by_edge_type.setdefault(schema.edge_type, schema)
        for edge_type, watched in by_edge_type.items():
            owner_ref = find_list_owner(runtime.store, node.ref, edge_type)
            if owner_ref is None:
                continue
            owner = runtime.load(owner_ref, default_class=watched.owner)
            owner_schema = self._list_schema_of(owner, edge_type) or watched
            OrderedListView(owner, owner_schema).delete(node)
            logger.debug(
                "Repaired list after node deletion", edge_type=edge_type, name=owner_schema.name
            )

    @staticmethod
    def _list_schema_of(owner: Node, edge_type: str) -> RelationshipSchema | None:
        """Return the owner's own list declaration over ``edge_type``."""
        for schema in type(owner).relationships():
            if (
                schema.cardinality is Cardinality.LIST
                and schema.stores_edges
                and schema.edge_type == edge_type
            ):
                return schema
        return None


list_maintainer = ListMaintainer()
