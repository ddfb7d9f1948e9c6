"""Tests for the in-memory graph store and search index."""

from __future__ import annotations

import pytest

from graph_ogm import InMemoryGraphStore, InMemorySearchIndex, NoActiveTransaction
from graph_ogm.store.base import Direction, EdgeEnd, other_end

# =============================================================================
# TRANSACTIONS
# =============================================================================


class TestTransactions:
    """Tests for the snapshot transaction scope."""

    def test_mutation_outside_transaction_raises(self) -> None:
        """Verify writes require an open scope."""
        graph_store = InMemoryGraphStore()

        with pytest.raises(NoActiveTransaction) as exc_info:
            graph_store.create_node()

        assert exc_info.value.operation == "create_node"

    def test_reads_work_outside_transaction(self) -> None:
        """Verify reads do not need a scope."""
        graph_store = InMemoryGraphStore()
        with graph_store.transaction():
            node = graph_store.create_node()
            graph_store.set_property(node, "name", "ada")

        assert graph_store.get_property(node, "name") == "ada"
        assert graph_store.properties(node) == {"name": "ada"}

    def test_exception_rolls_back(self) -> None:
        """Verify a failing scope restores the state it started from."""
        graph_store = InMemoryGraphStore()
        with graph_store.transaction():
            kept = graph_store.create_node()

        with pytest.raises(RuntimeError), graph_store.transaction():
            graph_store.set_property(kept, "name", "changed")
            dropped = graph_store.create_node()
            raise RuntimeError("boom")

        assert graph_store.get_property(kept, "name") is None
        assert graph_store.has_node(kept)
        assert not graph_store.has_node(dropped)
        assert not graph_store.in_transaction

    def test_nested_scope_joins_outer(self) -> None:
        """Verify an inner scope does not commit or roll back on its own."""
        graph_store = InMemoryGraphStore()

        with pytest.raises(RuntimeError), graph_store.transaction():
            with graph_store.transaction():
                node = graph_store.create_node()
            assert graph_store.in_transaction
            raise RuntimeError("outer fails")

        assert not graph_store.has_node(node)


# =============================================================================
# NODES AND EDGES
# =============================================================================


class TestGraphStore:
    """Tests for node, edge and property storage."""

    def test_edges_by_direction(self, store: InMemoryGraphStore) -> None:
        """Verify edges are filtered by direction and type."""
        a = store.create_node()
        b = store.create_node()
        knows = store.create_edge(a, b, "knows")
        likes = store.create_edge(b, a, "likes")

        assert store.edges(a, direction=Direction.OUTGOING) == [knows]
        assert store.edges(a, direction=Direction.INCOMING) == [likes]
        assert store.edges(a) == [knows, likes]
        assert store.edges(a, "likes") == [likes]
        assert store.edges(b, "knows", Direction.OUTGOING) == []

    def test_self_loop_listed_once(self, store: InMemoryGraphStore) -> None:
        """Verify a self-loop shows up in each direction and once for BOTH."""
        a = store.create_node()
        loop = store.create_edge(a, a, "self")

        assert store.edges(a, direction=Direction.OUTGOING) == [loop]
        assert store.edges(a, direction=Direction.INCOMING) == [loop]
        assert store.edges(a) == [loop]
        assert other_end(store, loop, a) == a

    def test_endpoints_and_type(self, store: InMemoryGraphStore) -> None:
        """Verify edge endpoints and type are reported."""
        a = store.create_node()
        b = store.create_node()
        edge = store.create_edge(a, b, "knows")

        assert store.endpoint(edge, EdgeEnd.START) == a
        assert store.endpoint(edge, EdgeEnd.END) == b
        assert store.edge_type(edge) == "knows"
        assert other_end(store, edge, a) == b
        assert other_end(store, edge, b) == a

    def test_edge_properties(self, store: InMemoryGraphStore) -> None:
        """Verify properties work on edge references too."""
        a = store.create_node()
        edge = store.create_edge(a, store.create_node(), "knows")

        store.set_property(edge, "since", 2020)
        assert store.get_property(edge, "since") == 2020

        store.delete_property(edge, "since")
        assert store.properties(edge) == {}

    def test_edges_snapshot_allows_mutation(self, store: InMemoryGraphStore) -> None:
        """Verify deleting while iterating the returned edges is safe."""
        a = store.create_node()
        for _ in range(3):
            store.create_edge(a, store.create_node(), "knows")

        for edge in store.edges(a):
            store.delete_edge(edge)

        assert store.edges(a) == []

    def test_delete_node_with_edges_raises(self, store: InMemoryGraphStore) -> None:
        """Verify a node must be detached before deletion."""
        a = store.create_node()
        b = store.create_node()
        edge = store.create_edge(a, b, "knows")

        with pytest.raises(ValueError, match="still has relationships"):
            store.delete_node(a)

        store.delete_edge(edge)
        store.delete_node(a)
        assert not store.has_node(a)

    def test_unknown_node_raises(self, store: InMemoryGraphStore) -> None:
        """Verify edge references are not accepted as nodes."""
        a = store.create_node()
        edge = store.create_edge(a, a, "self")

        with pytest.raises(KeyError):
            store.edges(edge)


# =============================================================================
# SEARCH INDEX
# =============================================================================


class TestInMemorySearchIndex:
    """Tests for the dictionary-backed search index."""

    def test_query_by_equality(self) -> None:
        """Verify scalar fields match by equality."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "name", "ada")
        index.put("Person", "n2", "name", "bob")

        assert list(index.query("Person", {"name": "ada"})) == ["n1"]
        assert list(index.query("Person", {"name": "eve"})) == []

    def test_query_list_by_membership(self) -> None:
        """Verify list fields match when they contain the value."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "friends.name", ["bob", "eve"])

        assert list(index.query("Person", {"friends.name": "eve"})) == ["n1"]
        assert list(index.query("Person", {"friends.name": "zed"})) == []

    def test_query_requires_all_fields(self) -> None:
        """Verify every predicate field must match."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "name", "ada")
        index.put("Person", "n1", "city", "london")
        index.put("Person", "n2", "name", "ada")

        assert list(index.query("Person", {"name": "ada", "city": "london"})) == ["n1"]

    def test_class_tags_are_separate(self) -> None:
        """Verify documents of different class tags do not mix."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "name", "ada")

        assert list(index.query("Company", {"name": "ada"})) == []

    def test_remove_field(self) -> None:
        """Verify removing the last field drops the document."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "name", "ada")
        index.put("Person", "n1", "city", "london")

        index.remove("Person", "n1", "name")
        assert index.document("Person", "n1") == {"city": "london"}

        index.remove("Person", "n1", "city")
        index.remove("Person", "n1", "city")
        assert index.document("Person", "n1") == {}

    def test_transaction_rolls_back_writes(self) -> None:
        """Verify puts and removes inside a failed scope are undone."""
        index = InMemorySearchIndex()
        index.put("Person", "n1", "name", "ada")

        with pytest.raises(RuntimeError), index.transaction():
            index.put("Person", "n2", "name", "bob")
            with index.transaction():
                index.remove("Person", "n1", "name")
            raise RuntimeError("abort")

        assert list(index.query("Person", {"name": "ada"})) == ["n1"]
        assert list(index.query("Person", {"name": "bob"})) == []

    def test_transaction_keeps_committed_writes(self) -> None:
        """Verify a clean scope keeps its writes."""
        index = InMemorySearchIndex()

        with index.transaction():
            index.put("Person", "n1", "name", "ada")

        assert index.document("Person", "n1") == {"name": "ada"}
