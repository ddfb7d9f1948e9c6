"""Tests for the Neo4j-backed graph store, against a mocked driver."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from graph_ogm import Neo4jStoreConfig, NoActiveTransaction
from graph_ogm.store.base import Direction, EdgeEnd
from graph_ogm.store.neo4j_store import Neo4jGraphStore, Neo4jRef, _quote

if TYPE_CHECKING:
    from tests.conftest import MockDriver, MockSession


@pytest.fixture
def neo4j_store(mock_neo4j_driver: MockDriver) -> Neo4jGraphStore:
    """Provide a store over the mock driver."""
    return Neo4jGraphStore(mock_neo4j_driver, database="ogm", node_label="Thing")


# =============================================================================
# TRANSACTIONS
# =============================================================================


class TestTransactions:
    """Tests for explicit transaction handling."""

    def test_commit_on_success(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify a clean block commits."""
        with neo4j_store.transaction():
            pass

        (tx,) = mock_neo4j_session.transactions
        assert tx.committed
        assert not tx.rolled_back
        assert tx.closed

    def test_rollback_on_error(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify a failing block rolls back and re-raises."""
        with pytest.raises(RuntimeError), neo4j_store.transaction():
            raise RuntimeError("boom")

        (tx,) = mock_neo4j_session.transactions
        assert tx.rolled_back
        assert not tx.committed

    def test_nested_scope_joins(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify nested scopes share one transaction."""
        with neo4j_store.transaction(), neo4j_store.transaction():
            pass

        assert len(mock_neo4j_session.transactions) == 1

    def test_write_outside_transaction_raises(self, neo4j_store: Neo4jGraphStore) -> None:
        """Verify mutations need an open transaction."""
        with pytest.raises(NoActiveTransaction):
            neo4j_store.create_node()

    def test_session_uses_database(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_driver: MockDriver
    ) -> None:
        """Verify sessions are opened on the configured database."""
        with neo4j_store.transaction():
            pass

        assert mock_neo4j_driver.databases == ["ogm"]


# =============================================================================
# CYPHER
# =============================================================================


class TestCypher:
    """Tests for the Cypher issued by each operation."""

    def test_create_node(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify nodes are created with the store label."""
        mock_neo4j_session.set_result("CREATE (n:", [{"id": "4:abc:1"}])

        with neo4j_store.transaction():
            ref = neo4j_store.create_node()

        assert ref == Neo4jRef("node", "4:abc:1")
        query, _ = mock_neo4j_session.queries[0]
        assert "CREATE (n:`Thing`)" in query

    def test_create_edge(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify edge types are quoted and endpoints passed as parameters."""
        mock_neo4j_session.set_result("CREATE (a)-", [{"id": "5:abc:9"}])
        a = Neo4jRef("node", "a")
        b = Neo4jRef("node", "b")

        with neo4j_store.transaction():
            edge = neo4j_store.create_edge(a, b, "employees#next")

        assert edge == Neo4jRef("edge", "5:abc:9")
        query, params = mock_neo4j_session.queries[0]
        assert "[r:`employees#next`]" in query
        assert params == {"start": "a", "end": "b"}

    def test_set_and_delete_property(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify properties are merged, with null removing them."""
        node = Neo4jRef("node", "n1")

        with neo4j_store.transaction():
            neo4j_store.set_property(node, "name", "ada")
            neo4j_store.delete_property(node, "name")

        (set_query, set_params), (_, delete_params) = mock_neo4j_session.queries
        assert "SET x += $props" in set_query
        assert set_params == {"id": "n1", "props": {"name": "ada"}}
        assert delete_params == {"id": "n1", "props": {"name": None}}

    def test_edge_property_matches_relationship(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify edge references are matched as relationships."""
        with neo4j_store.transaction():
            neo4j_store.set_property(Neo4jRef("edge", "e1"), "since", 2020)

        query, _ = mock_neo4j_session.queries[0]
        assert "MATCH ()-[x]->()" in query

    def test_read_outside_transaction(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify reads use a short-lived session when no transaction is open."""
        mock_neo4j_session.set_result("RETURN x[$name]", [{"value": "ada"}])

        assert neo4j_store.get_property(Neo4jRef("node", "n1"), "name") == "ada"
        assert mock_neo4j_session.transactions == []

    def test_missing_node_property_is_none(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify reads of unknown references return None."""
        assert neo4j_store.get_property(Neo4jRef("node", "gone"), "name") is None
        assert neo4j_store.properties(Neo4jRef("node", "gone")) == {}

    @pytest.mark.parametrize(
        ("direction", "pattern"),
        [
            (Direction.OUTGOING, "(n)-[r:`knows`]->()"),
            (Direction.INCOMING, "(n)<-[r:`knows`]-()"),
            (Direction.BOTH, "(n)-[r:`knows`]-()"),
        ],
    )
    def test_edges_pattern(
        self,
        neo4j_store: Neo4jGraphStore,
        mock_neo4j_session: MockSession,
        direction: Direction,
        pattern: str,
    ) -> None:
        """Verify traversal direction maps to the Cypher pattern."""
        mock_neo4j_session.set_result("RETURN DISTINCT", [{"id": "e1"}, {"id": "e2"}])

        edges = neo4j_store.edges(Neo4jRef("node", "n1"), "knows", direction)

        assert edges == [Neo4jRef("edge", "e1"), Neo4jRef("edge", "e2")]
        query, _ = mock_neo4j_session.queries[0]
        assert pattern in query

    def test_edges_any_type(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify omitting the edge type matches every relationship."""
        neo4j_store.edges(Neo4jRef("node", "n1"))

        query, _ = mock_neo4j_session.queries[0]
        assert "(n)-[r]-()" in query

    def test_endpoint(
        self, neo4j_store: Neo4jGraphStore, mock_neo4j_session: MockSession
    ) -> None:
        """Verify endpoints are resolved by element id."""
        mock_neo4j_session.set_result("RETURN elementId(a)", [{"start": "s", "end": "e"}])
        edge = Neo4jRef("edge", "e1")

        assert neo4j_store.endpoint(edge, EdgeEnd.START) == Neo4jRef("node", "s")
        assert neo4j_store.endpoint(edge, EdgeEnd.END) == Neo4jRef("node", "e")

    def test_quote_escapes_backticks(self) -> None:
        """Verify labels and types cannot break out of their quotes."""
        assert _quote("we`ird") == "`we``ird`"


class TestLifecycle:
    """Tests for construction from configuration and shutdown."""

    def test_from_config(
        self, monkeypatch: pytest.MonkeyPatch, mock_neo4j_driver: MockDriver
    ) -> None:
        """Verify from_config builds a driver from the settings."""
        import neo4j

        calls: list[tuple[str, tuple[str, str]]] = []

        def fake_driver(uri: str, auth: tuple[str, str]) -> MockDriver:
            calls.append((uri, auth))
            return mock_neo4j_driver

        monkeypatch.setattr(neo4j.GraphDatabase, "driver", fake_driver)
        config = Neo4jStoreConfig(uri="bolt://db:7687", password="pw", database="ogm")

        store = Neo4jGraphStore.from_config(config)

        assert calls == [("bolt://db:7687", ("neo4j", "pw"))]
        assert store.database == "ogm"
        assert store.driver is mock_neo4j_driver

        store.close()
        assert mock_neo4j_driver.closed
