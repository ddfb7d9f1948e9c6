"""Search index maintenance.

This package provides:
- Index rule records (property and relationship-triggered)
- The per-root-class Indexer
"""

from graph_ogm.indexing.indexer import (
    Indexer,
    declare_relationship_index,
    relationship_changed,
)
from graph_ogm.indexing.rules import PropertyIndexRule, RelationshipIndexRule

__all__ = [
    "Indexer",
    "PropertyIndexRule",
    "RelationshipIndexRule",
    "declare_relationship_index",
    "relationship_changed",
]
