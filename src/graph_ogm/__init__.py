"""Graph object mapper.

Maps Python classes onto nodes of a property graph, with declared
properties, single and multi-valued relationships, ordered lists stored
as edge chains, and a search index kept current as nodes and edges
change.

Usage:
    import graph_ogm
    from graph_ogm import InMemoryGraphStore, Node

    class Person(Node):
        pass

    Person.has_property("name")
    Person.has_many("friends").to("Person")
    Person.index("name", "friends.name")

    store = InMemoryGraphStore()
    runtime = graph_ogm.start(store)
    with runtime.transaction():
        ada = Person(name="ada")
        ada.friends.append(Person(name="bob"))

    list(Person.find({"friends.name": "bob"}))  # [ada]

    # Against Neo4j:
    store = Neo4jGraphStore.from_config(Neo4jStoreConfig.from_env())
"""

# =============================================================================
# CONFIGURATION
# =============================================================================
from .config import (
    CASCADE_IGNORE_PROPERTY,
    CLASSNAME_PROPERTY,
    Neo4jStoreConfig,
    list_counter_property,
    list_link_type,
)

# =============================================================================
# EXCEPTIONS
# =============================================================================
from .exceptions import (
    AlreadyInList,
    AmbiguousDirection,
    CounterNotEnabled,
    GraphOgmError,
    InvalidCardinality,
    NoActiveTransaction,
    NotInList,
    RuntimeNotStartedError,
    SchemaFrozenError,
    UnknownRelationship,
    UnresolvedTargetClass,
)

# =============================================================================
# EVENTS AND CLASS LOOKUP
# =============================================================================
from .classes import NodeClassRegistry, node_classes
from .debug import node_tree, print_node
from .events import EventHandler, event_handler, on_node_created, on_node_deleted, remove_listener

# Indexing
from .indexing import Indexer, PropertyIndexRule, RelationshipIndexRule

# =============================================================================
# MAPPING
# =============================================================================
from .node import Node
from .properties import PropertyInfo, PropertyRegistry
from .relationships import Cardinality, RelationshipRegistry, RelationshipSchema
from .relationships.ordered_list import OrderedListView
from .relationships.traversal import Traversal
from .relationships.views import Relationship, RelationshipView

# =============================================================================
# RUNTIME AND STORES
# =============================================================================
from .runtime import Runtime, current, start, stop
from .store import (
    Direction,
    GraphStore,
    InMemoryGraphStore,
    InMemorySearchIndex,
    Neo4jGraphStore,
    SearchIndex,
)

__version__ = "0.1.0"

__all__ = [
    # ==========================================================================
    # MAPPING
    # ==========================================================================
    "Node",
    "Cardinality",
    "RelationshipSchema",
    "RelationshipRegistry",
    "Relationship",
    "RelationshipView",
    "OrderedListView",
    "Traversal",
    "PropertyInfo",
    "PropertyRegistry",
    # Indexing
    "Indexer",
    "PropertyIndexRule",
    "RelationshipIndexRule",
    # Events and class lookup
    "EventHandler",
    "event_handler",
    "on_node_created",
    "on_node_deleted",
    "remove_listener",
    "NodeClassRegistry",
    "node_classes",
    # ==========================================================================
    # RUNTIME AND STORES
    # ==========================================================================
    "Runtime",
    "start",
    "stop",
    "current",
    "Direction",
    "GraphStore",
    "SearchIndex",
    "InMemoryGraphStore",
    "InMemorySearchIndex",
    "Neo4jGraphStore",
    # ==========================================================================
    # CONFIGURATION
    # ==========================================================================
    "Neo4jStoreConfig",
    "CLASSNAME_PROPERTY",
    "CASCADE_IGNORE_PROPERTY",
    "list_link_type",
    "list_counter_property",
    # ==========================================================================
    # EXCEPTIONS
    # ==========================================================================
    "GraphOgmError",
    "UnknownRelationship",
    "InvalidCardinality",
    "CounterNotEnabled",
    "AmbiguousDirection",
    "NoActiveTransaction",
    "SchemaFrozenError",
    "UnresolvedTargetClass",
    "NotInList",
    "AlreadyInList",
    "RuntimeNotStartedError",
    # Debugging
    "node_tree",
    "print_node",
    "__version__",
]
