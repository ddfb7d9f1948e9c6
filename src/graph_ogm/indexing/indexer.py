"""Keeps the search index consistent with nodes and relationships.

There is one Indexer per root class, shared by the whole class tree.
An indexer holds two kinds of rules:

- property rules: writes to an indexed property are forwarded to the
  SearchIndex under the root class's tag;
- relationship rules, stored on the trigger class's indexer: a write to
  the indexed property of a trigger node reindexes field
  ``<relationship>.<property>`` of every updater node related to it.

Relationship edits (edge created or deleted) reindex the updater endpoint
of every matching rule. All updates are synchronous.

Example:
    >>> Person.has_many("friends").to("Person")
    >>> Person.index("name", "friends.name")
    >>> list(Person.find(name="ada"))
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.exceptions import AmbiguousDirection, InvalidCardinality, UnresolvedTargetClass
from graph_ogm.indexing.rules import (
    PropertyIndexRule,
    RelationshipIndexRule,
    coerce_field_value,
)
from graph_ogm.relationships.chain import find_list_owner
from graph_ogm.relationships.schema import Cardinality
from graph_ogm.runtime import current
from graph_ogm.singleton import PerRootClass
from graph_ogm.store.base import Direction, other_end

if TYPE_CHECKING:
    from graph_ogm.node import Node
    from graph_ogm.store.base import SearchIndex

logger = structlog.get_logger(__name__)


class Indexer(PerRootClass):
    """Index rules and index maintenance for one root class."""

    def __init__(self, root: type[Node]) -> None:
        super().__init__(root)
        self._property_rules: dict[str, PropertyIndexRule] = {}
        # rules where this tree is the trigger, by triggering property
        self._triggers: dict[str, list[RelationshipIndexRule]] = {}
        # rules where this tree is the updater
        self._updates: list[RelationshipIndexRule] = []

    def __repr__(self) -> str:
        return f"<Indexer {self.class_tag}>"

    @property
    def class_tag(self) -> str:
        """Tag identifying this tree's documents in the search index."""
        return self.root.__name__

    @staticmethod
    def _search_index() -> SearchIndex:
        return current().search_index

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    @property
    def property_fields(self) -> list[str]:
        """Names of the indexed properties."""
        return list(self._property_rules)

    @property
    def relationship_rules(self) -> list[RelationshipIndexRule]:
        """Relationship rules triggered by this tree."""
        return [rule for rules in self._triggers.values() for rule in rules]

    @property
    def updater_rules(self) -> list[RelationshipIndexRule]:
        """Relationship rules whose index entries live in this tree."""
        return list(self._updates)

    def field_type(self, field: str) -> Any:
        """Return the type declared for index field ``field``, or None."""
        rule = self._property_rules.get(field)
        if rule is not None:
            return rule.field_type
        for relationship_rule in self._updates:
            if relationship_rule.field == field:
                return relationship_rule.field_type
        return None

    def add_property_rule(
        self, property_name: str, field_type: Any = None
    ) -> PropertyIndexRule:
        """Index writes to ``property_name`` on nodes of this tree.

        Args:
            property_name: Property to index.
            field_type: Type indexed and queried values are validated into.
        """
        rule = PropertyIndexRule(self.root, property_name, field_type)
        self._property_rules[property_name] = rule
        logger.debug(
            "Added property index",
            root=self.class_tag,
            field=property_name,
            field_type=getattr(field_type, "__name__", field_type),
        )
        return rule

    def remove_property_rule(self, property_name: str) -> None:
        """Stop indexing ``property_name``.

        Existing index entries stay until the node is reindexed.
        """
        self._property_rules.pop(property_name, None)
        logger.debug("Removed property index", root=self.class_tag, field=property_name)

    def add_relationship_rule(
        self,
        updater_class: type[Node],
        relationship_name: str,
        edge_type: str,
        property_name: str,
        namespace: str,
        *,
        direction: Direction = Direction.OUTGOING,
        ordered: bool = False,
        field_type: Any = None,
    ) -> RelationshipIndexRule:
        """Reindex ``updater_class`` nodes when a related node of this tree changes.

        Args:
            updater_class: Class whose index field gets refreshed.
            relationship_name: Relationship on the updater class.
            edge_type: Stored edge type of that relationship.
            property_name: Property of this tree's nodes to index.
            namespace: Relationship namespace tag.
            direction: Edge direction seen from the updater.
            ordered: Whether the relationship is an ordered list.
            field_type: Type indexed and queried values are validated into.

        Returns:
            The registered rule.
        """
        rule = RelationshipIndexRule(
            trigger_class=self.root,
            updater_class=updater_class,
            relationship_name=relationship_name,
            edge_type=edge_type,
            property_name=property_name,
            namespace=namespace,
            direction=direction,
            ordered=ordered,
            field_type=field_type,
        )
        # a redeclaration replaces the earlier rule, and with it the field type
        rules = [r for r in self._triggers.get(property_name, []) if r != rule]
        self._triggers[property_name] = [*rules, rule]
        updater = Indexer.instance(updater_class.root_class())
        updater._updates = [r for r in updater._updates if r != rule] + [rule]
        logger.debug(
            "Added relationship index",
            trigger=self.class_tag,
            updater=updater_class.__name__,
            field=rule.field,
            edge_type=edge_type,
            namespace=namespace,
        )
        return rule

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def on_property_changed(self, node: Node, property_name: str) -> None:
        """Push a property change to the search index.

        Args:
            node: Node whose property was written.
            property_name: Name of the written property.
        """
        if property_name in self._property_rules:
            self._put(node, property_name, node.get(property_name))

        for rule in self._triggers.get(property_name, []):
            if not isinstance(node, rule.trigger_class):
                continue
            for updater in self._updaters_of(node, rule):
                Indexer.instance(type(updater).root_class()).reindex_relationship(updater, rule)

    def reindex_relationship(self, node: Node, rule: RelationshipIndexRule) -> None:
        """Recompute the ``rule.field`` entry of an updater node."""
        values = [
            value
            for related in node.relationship(rule.relationship_name)
            if (value := related.get(rule.property_name)) is not None
        ]
        self._put(node, rule.field, values or None)

    def update_index(self, node: Node) -> None:
        """Reindex every property and relationship field of ``node``."""
        for property_name in self._property_rules:
            self._put(node, property_name, node.get(property_name))
        for rule in self._updates:
            if isinstance(node, rule.updater_class):
                self.reindex_relationship(node, rule)

    def delete_index(self, node: Node) -> None:
        """Remove every indexed field of ``node``."""
        search_index = self._search_index()
        for property_name in self._property_rules:
            search_index.remove(self.class_tag, node.ref, property_name)
        for rule in self._updates:
            search_index.remove(self.class_tag, node.ref, rule.field)
        logger.debug("Deleted index entries", root=self.class_tag, node=repr(node))

    def find(self, query: Mapping[str, Any] | None = None, **fields: Any) -> Iterator[Node]:
        """Yield nodes of this tree whose indexed fields match.

        Args:
            query: Field to value mapping.
            **fields: More field/value pairs, merged into ``query``.

        Yields:
            Matching nodes, loaded through the wrapper cache.
        """
        predicate = {
            name: coerce_field_value(self.field_type(name), value)
            for name, value in {**(query or {}), **fields}.items()
        }
        runtime = current()
        for ref in self._search_index().query(self.class_tag, predicate):
            yield runtime.load(ref, default_class=self.root)

    def _put(self, node: Node, field: str, value: Any) -> None:
        search_index = self._search_index()
        value = coerce_field_value(self.field_type(field), value)
        if value is None:
            search_index.remove(self.class_tag, node.ref, field)
        else:
            search_index.put(self.class_tag, node.ref, field, value)

    def _updaters_of(self, trigger: Node, rule: RelationshipIndexRule) -> Iterator[Node]:
        runtime = trigger.runtime
        store = runtime.store
        if rule.ordered:
            owners = [find_list_owner(store, trigger.ref, rule.edge_type)]
        else:
            owners = [
                other_end(store, edge, trigger.ref)
                for edge in store.edges(trigger.ref, rule.edge_type, rule.direction.reverse)
            ]
        for ref in owners:
            if ref is None:
                continue
            updater = runtime.load(ref, default_class=rule.updater_class)
            if isinstance(updater, rule.updater_class):
                yield updater


def relationship_changed(start: Node, end: Node, edge_type: str) -> None:
    """Reindex the endpoint(s) affected by an edge being created or deleted.

    Args:
        start: Node the edge leaves.
        end: Node the edge enters.
        edge_type: Stored edge type.
    """
    for trigger, updater, direction in (
        (end, start, Direction.OUTGOING),
        (start, end, Direction.INCOMING),
    ):
        indexer = Indexer.instance(type(trigger).root_class())
        for rule in indexer.relationship_rules:
            if (
                rule.edge_type == edge_type
                and rule.direction is direction
                and isinstance(trigger, rule.trigger_class)
                and isinstance(updater, rule.updater_class)
            ):
                Indexer.instance(type(updater).root_class()).reindex_relationship(updater, rule)


def declare_relationship_index(
    updater_class: type[Node],
    relationship_name: str,
    property_name: str,
    field_type: Any = None,
) -> RelationshipIndexRule:
    """Resolve trigger and updater for ``<relationship>.<property>`` and register it.

    The updater is always ``updater_class``. The trigger is the class at
    the other end: the ``to`` target of an outgoing relationship, or the
    ``from_`` source of an incoming one, whose own declaration then
    supplies the edge type and namespace.

    Raises:
        UnknownRelationship: If the relationship, or the far-side
            relationship it mirrors, is not declared.
        AmbiguousDirection: If no trigger class can be resolved.
        InvalidCardinality: For belongs_to_list declarations, which
            store no edges of their own.
    """
    schema = updater_class.relationships().lookup(relationship_name)
    if not schema.stores_edges:
        raise InvalidCardinality(relationship_name, schema.cardinality.value, "index")
    if not schema.has_target:
        hint = ".to(cls)" if schema.direction is Direction.OUTGOING else ".from_(cls, name)"
        raise AmbiguousDirection(
            updater_class.__name__,
            relationship_name,
            f"no class declared at the other end; declare it with {hint}",
        )
    try:
        trigger_class = schema.target_class
    except UnresolvedTargetClass as e:
        raise AmbiguousDirection(updater_class.__name__, relationship_name, str(e)) from e

    # resolves the far side's nested schema for from_(cls, name)
    edge_type = schema.edge_type
    namespace = schema.namespace
    schema.freeze()

    return Indexer.instance(trigger_class.root_class()).add_relationship_rule(
        updater_class,
        relationship_name,
        edge_type,
        property_name,
        namespace,
        direction=schema.direction,
        ordered=schema.cardinality is Cardinality.LIST,
        field_type=field_type,
    )
