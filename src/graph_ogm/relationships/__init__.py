"""Relationship declarations and the edge chain primitives.

This package provides:
- RelationshipSchema and Cardinality (declared relationship metadata)
- RelationshipRegistry (one per class tree)
- Ordered-list chain walks

The lazy views live in ``graph_ogm.relationships.views`` and
``graph_ogm.relationships.ordered_list``; they depend on the indexer,
which itself depends on this package, so they are not imported here.
"""

from graph_ogm.relationships.chain import find_list_owner
from graph_ogm.relationships.registry import RelationshipRegistry
from graph_ogm.relationships.schema import Cardinality, RelationshipSchema

__all__ = [
    "Cardinality",
    "RelationshipRegistry",
    "RelationshipSchema",
    "find_list_owner",
]
