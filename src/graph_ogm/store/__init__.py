"""Graph store and search index collaborators.

This package provides:
- The GraphStore and SearchIndex protocols the mapper is written against
- In-memory implementations of both, for tests and embedded use
- A Neo4j-backed GraphStore
"""

from graph_ogm.store.base import (
    Direction,
    EdgeEnd,
    EdgeRef,
    GraphStore,
    NodeRef,
    SearchIndex,
    other_end,
)
from graph_ogm.store.memory import InMemoryGraphStore, InMemorySearchIndex
from graph_ogm.store.neo4j_store import Neo4jGraphStore, Neo4jRef

__all__ = [
    # Contracts
    "Direction",
    "EdgeEnd",
    "EdgeRef",
    "GraphStore",
    "NodeRef",
    "SearchIndex",
    "other_end",
    # In-memory
    "InMemoryGraphStore",
    "InMemorySearchIndex",
    # Neo4j
    "Neo4jGraphStore",
    "Neo4jRef",
]
