"""Test suite for graph-ogm.

This package contains tests for all modules:
- test_node: Node identity, creation, properties and deletion
- test_relationships: Declarations and one/many views
- test_ordered_list: Edge-chain lists, repair and self-healing
- test_indexer: Property and relationship-triggered indexing
- test_properties: Declared properties and pydantic marshalling
- test_store_memory / test_neo4j_store: GraphStore implementations
"""
