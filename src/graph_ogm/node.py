"""Mapped graph nodes.

Subclass :class:`Node` to map a kind of graph node to a Python class,
then declare its properties, relationships and indexes on the class:

    class Person(Node):
        pass

    Person.has_property("name", "age")
    Person.has_one("address").to("Address")
    Person.has_many("friends").to(Person)
    Person.index("name", "friends.name")

A direct subclass of Node is the root of a class tree. Every class in the
tree shares the root's relationship registry, property registry and
indexer, so declarations on a parent apply to its subclasses.

Attribute access is dispatched through those registries: reading
``person.address`` returns the single related node, ``person.friends`` a
lazy RelationshipView, ``person.name`` the stored property. Assigning to
a has_one relationship replaces its edge; assigning to a declared
property writes it and updates the index.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

import structlog

from graph_ogm.classes import node_classes
from graph_ogm.config import CASCADE_IGNORE_PROPERTY, CLASSNAME_PROPERTY
from graph_ogm.events import event_handler
from graph_ogm.exceptions import InvalidCardinality
from graph_ogm.indexing.indexer import Indexer, declare_relationship_index
from graph_ogm.properties import PropertyRegistry
from graph_ogm.relationships.chain import find_list_owner
from graph_ogm.relationships.ordered_list import OrderedListView, list_maintainer
from graph_ogm.relationships.registry import RelationshipRegistry
from graph_ogm.relationships.schema import Cardinality, RelationshipSchema
from graph_ogm.relationships.traversal import Traversal
from graph_ogm.relationships.views import Relationship, RelationshipView
from graph_ogm.runtime import current
from graph_ogm.store.base import Direction

if TYPE_CHECKING:
    from graph_ogm.runtime import Runtime
    from graph_ogm.store.base import NodeRef

logger = structlog.get_logger(__name__)


class Node:
    """Wrapper around one graph node.

    Creating an instance creates a node in the active graph store, stamps
    it with ``_classname`` and fires the ``node_created`` event. Custom
    initialization goes in ``init_node``, which runs only on creation and
    not when an existing node is loaded:

        class Person(Node):
            def init_node(self, name, age):
                self.name = name
                self.age = age

    Without ``init_node``, keyword arguments are stored as properties.

    Two wrappers are equal when they wrap the same graph node.
    """

    _root_class: ClassVar[type[Node]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        parents = [base for base in cls.__bases__ if issubclass(base, Node) and base is not Node]
        cls._root_class = parents[0]._root_class if parents else cls
        node_classes.register(cls)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        runtime = current()
        ref = runtime.store.create_node()
        object.__setattr__(self, "_ref", ref)
        object.__setattr__(self, "_runtime", runtime)
        runtime.store.set_property(ref, CLASSNAME_PROPERTY, type(self).__name__)
        runtime.remember(self)
        event_handler.node_created(self)

        init_node = getattr(self, "init_node", None)
        if init_node is not None:
            init_node(*args, **kwargs)
        elif args:
            msg = (
                f"{type(self).__name__}() takes keyword arguments only "
                "unless it defines init_node"
            )
            raise TypeError(msg)
        else:
            relationships = type(self).relationships()
            for name, value in kwargs.items():
                if name in relationships:
                    setattr(self, name, value)
                else:
                    self.set(name, value)

    @classmethod
    def wrap(cls, ref: NodeRef, runtime: Runtime | None = None) -> Node:
        """Wrap an existing node, reusing the cached wrapper if there is one.

        Args:
            ref: Reference of an existing node.
            runtime: Runtime the node lives in; the active one by default.
        """
        runtime = runtime or current()
        cached = runtime.cached(ref)
        if cached is not None:
            return cached
        node = cls.__new__(cls)
        object.__setattr__(node, "_ref", ref)
        object.__setattr__(node, "_runtime", runtime)
        runtime.remember(node)
        return node

    @classmethod
    def load(cls, ref: NodeRef) -> Node:
        """Load an existing node, choosing its class from ``_classname``."""
        return current().load(ref, default_class=cls)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @property
    def ref(self) -> NodeRef:
        """Store reference of the wrapped node."""
        return self._ref

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Node) and other._ref == self._ref

    def __hash__(self) -> int:
        return hash(self._ref)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._ref!r}>"

    # -------------------------------------------------------------------------
    # Class-level registries
    # -------------------------------------------------------------------------

    @classmethod
    def root_class(cls) -> type[Node]:
        """The class whose registries this class shares."""
        return cls._root_class

    @classmethod
    def relationships(cls) -> RelationshipRegistry:
        return RelationshipRegistry.instance(cls._root_class)

    @classmethod
    def properties(cls) -> PropertyRegistry:
        return PropertyRegistry.instance(cls._root_class)

    @classmethod
    def indexer(cls) -> Indexer:
        return Indexer.instance(cls._root_class)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    @classmethod
    def has_property(cls, *names: str, **options: Any) -> None:
        """Declare properties shared by the class tree.

        Args:
            *names: Property names.
            **options: ``type=SomeType`` marshals values through pydantic.

        Example:
            >>> Person.has_property("name", "city")
            >>> Person.has_property("born", type=datetime.date)
        """
        for name in names:
            cls.properties().declare(name, **options)

    @classmethod
    def is_property_declared(cls, name: str) -> bool:
        return cls.properties().is_declared(name)

    @classmethod
    def is_marshalled(cls, name: str) -> bool:
        """Whether values of property ``name`` are marshalled."""
        return cls.properties().is_marshalled(name)

    @classmethod
    def has_one(cls, name: str, edge_type: str | None = None) -> RelationshipSchema:
        """Declare a single-valued outgoing relationship.

        Example:
            >>> Order.has_one("customer").to(Customer)
        """
        return cls.relationships().declare(name, Cardinality.ONE, cls, edge_type=edge_type)

    @classmethod
    def has_many(cls, name: str, edge_type: str | None = None) -> RelationshipSchema:
        """Declare a multi-valued outgoing relationship.

        Example:
            >>> Order.has_many("order_lines").to(Product)
            >>> Address.has_many("people").from_(Person, "address")
        """
        return cls.relationships().declare(name, Cardinality.MANY, cls, edge_type=edge_type)

    has_n = has_many

    @classmethod
    def has_list(
        cls, name: str, counter: bool = False, edge_type: str | None = None
    ) -> RelationshipSchema:
        """Declare an ordered list of nodes.

        New items are inserted at the head. With ``counter=True`` the list
        keeps its size in a property on the owner. Deleting an item node
        anywhere removes it from the list.

        Example:
            >>> Company.has_list("employees", counter=True)
            >>> company.employees.push_front(e1).push_front(e2)
            >>> company.employees.size()
            2
        """
        schema = cls.relationships().declare(
            name, Cardinality.LIST, cls, edge_type=edge_type, counter=counter
        )
        list_maintainer.watch(schema)
        return schema

    @classmethod
    def belongs_to_list(cls, name: str, edge_type: str | None = None) -> RelationshipSchema:
        """Declare that instances are items of lists of edge type ``name``.

        Declares no storage. Items of such lists that carry no class tag
        load as this class, and ``item.<name>`` returns the list owner.
        """
        schema = cls.relationships().declare(
            name,
            Cardinality.LIST,
            cls,
            edge_type=edge_type,
            direction=Direction.INCOMING,
            stores_edges=False,
        )
        list_maintainer.register_item_class(edge_type or name, cls)
        return schema

    @classmethod
    def index(cls, *fields: str, **options: Any) -> None:
        """Index properties, or properties of related nodes.

        ``"name"`` indexes this class's ``name`` property.
        ``"friends.name"`` indexes the ``name`` of every node related via
        ``friends`` and keeps it current when either side changes.

        Args:
            *fields: Fields to index.
            **options: ``type=SomeType`` validates indexed and queried
                values of these fields into that type.

        Example:
            >>> Person.index("age", type=int)
            >>> list(Person.find(age="42"))

        Raises:
            TypeError: On an unknown option.
            UnknownRelationship: If a relationship is not declared.
            AmbiguousDirection: If a relationship has no resolvable class
                at the other end.
        """
        field_type = options.pop("type", None)
        if options:
            msg = f"Unknown index options: {', '.join(sorted(options))}"
            raise TypeError(msg)
        for field in fields:
            relationship_name, _, property_name = field.partition(".")
            if property_name:
                declare_relationship_index(cls, relationship_name, property_name, field_type)
            else:
                cls.indexer().add_property_rule(relationship_name, field_type)

    @classmethod
    def remove_index(cls, *fields: str) -> None:
        """Stop indexing properties; existing entries remain until reindexed."""
        for field in fields:
            if "." in field:
                msg = "Removing a relationship index is not supported"
                raise NotImplementedError(msg)
            cls.indexer().remove_property_rule(field)

    @classmethod
    def find(cls, query: Mapping[str, Any] | None = None, **fields: Any) -> Iterator[Node]:
        """Find nodes of this class tree by indexed field values.

        Example:
            >>> Person.find(name="ada", city="london")
            >>> Person.find({"friends.name": "bob"})
        """
        return cls.indexer().find(query, **fields)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def get(self, name: str) -> Any:
        """Read a property, unmarshalling declared typed properties."""
        raw = self._runtime.store.get_property(self._ref, name)
        info = type(self).properties().get(name)
        return info.from_store(raw) if info is not None else raw

    def set(self, name: str, value: Any) -> None:
        """Write a property and update the index; None removes it."""
        store = self._runtime.store
        if value is None:
            store.delete_property(self._ref, name)
        else:
            info = type(self).properties().get(name)
            store.set_property(self._ref, name, info.to_store(value) if info else value)
        self.indexer().on_property_changed(self, name)

    def props(self) -> dict[str, Any]:
        """All stored properties, as stored."""
        return self._runtime.store.properties(self._ref)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        self.set(name, None)

    def __contains__(self, name: object) -> bool:
        return self._runtime.store.get_property(self._ref, name) is not None

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def relationship(self, name: str) -> RelationshipView:
        """Return the view of a declared relationship.

        Raises:
            UnknownRelationship: If ``name`` is not declared.
        """
        schema = type(self).relationships().lookup(name)
        if schema.cardinality is Cardinality.LIST:
            return OrderedListView(self, schema)
        return RelationshipView(self, schema)

    def rels(
        self, edge_type: str | None = None, direction: Direction = Direction.BOTH
    ) -> Iterator[Relationship]:
        """Yield every edge of this node, declared or not."""
        for edge in self._runtime.store.edges(self._ref, edge_type, direction):
            yield Relationship.load(self, edge)

    def traverse(self) -> Traversal:
        """Start a breadth-first traversal from this node.

        Example:
            >>> list(person.traverse().outgoing("friends").depth(2))
        """
        return Traversal(self)

    def _list_owner(self, schema: RelationshipSchema) -> Node | None:
        owner = find_list_owner(self._runtime.store, self._ref, schema.edge_type)
        if owner is None:
            return None
        return self._runtime.load(owner, default_class=schema.target_class)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        cls = type(self)
        schema = cls.relationships().get(name)
        if schema is not None:
            if not schema.stores_edges:
                return self._list_owner(schema.freeze())
            view = self.relationship(name)
            if schema.cardinality is Cardinality.ONE:
                return view.first()
            return view
        if cls.properties().is_declared(name):
            return self.get(name)
        msg = f"'{cls.__name__}' object has no attribute or declared property '{name}'"
        raise AttributeError(msg)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        cls = type(self)
        schema = cls.relationships().get(name)
        if schema is not None:
            if schema.cardinality is not Cardinality.ONE:
                raise InvalidCardinality(name, schema.cardinality.value, "assign")
            self.relationship(name).replace(value)
        elif cls.properties().is_declared(name):
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    # -------------------------------------------------------------------------
    # Indexing and deletion
    # -------------------------------------------------------------------------

    def update_index(self) -> None:
        """Reindex every indexed field of this node."""
        self.indexer().update_index(self)

    @staticmethod
    def is_cascade_ignorable(relationship: Relationship) -> bool:
        """Whether an edge is ignored when deciding on cascade deletion."""
        return CASCADE_IGNORE_PROPERTY in relationship

    def is_cascade_deletable(self) -> bool:
        """Whether every incoming edge of this node is cascade-ignorable."""
        return all(
            self.is_cascade_ignorable(relationship)
            for relationship in self.rels(direction=Direction.INCOMING)
        )

    def delete(self) -> None:
        """Delete the node, its edges and its index entries.

        Lists holding the node are repaired first (through the
        ``node_deleted`` event), then the remaining edges are deleted with
        their index side effects, then the node's own index entries.
        """
        event_handler.node_deleted(self)
        for relationship in list(self.rels()):
            relationship.delete()
        self.indexer().delete_index(self)
        self._runtime.store.delete_node(self._ref)
        self._runtime.forget(self)
        logger.debug("Deleted node", node=repr(self))


Node._root_class = Node
