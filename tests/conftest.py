"""Pytest configuration and shared test fixtures.

This module provides fixtures for testing the graph object mapper: an
in-memory runtime opened inside a transaction, and Neo4j driver mocks
for the Cypher-backed store.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

import graph_ogm
from graph_ogm import InMemoryGraphStore, InMemorySearchIndex

# =============================================================================
# IN-MEMORY RUNTIME FIXTURES
# =============================================================================


@pytest.fixture
def store() -> Iterator[InMemoryGraphStore]:
    """Provide a fresh in-memory store bound to the runtime.

    The test body runs inside an open transaction.

    Yields:
        The graph store.
    """
    graph_store = InMemoryGraphStore()
    runtime = graph_ogm.start(graph_store, InMemorySearchIndex())
    with runtime.transaction():
        yield graph_store
    graph_ogm.stop()


@pytest.fixture
def bare_store() -> Iterator[InMemoryGraphStore]:
    """Provide a fresh in-memory store bound to the runtime, outside any transaction.

    Yields:
        The graph store.
    """
    graph_store = InMemoryGraphStore()
    graph_ogm.start(graph_store, InMemorySearchIndex())
    yield graph_store
    graph_ogm.stop()


@pytest.fixture
def search_index(store: InMemoryGraphStore) -> InMemorySearchIndex:
    """Provide the search index of the running runtime."""
    return graph_ogm.current().search_index


# =============================================================================
# NEO4J MOCK FIXTURES
# =============================================================================


def _records_for(
    results: dict[str, list[dict]], default: list[dict], query: str
) -> list[MockRecord]:
    for pattern, records in results.items():
        if pattern in query:
            return [MockRecord(r) for r in records]
    return [MockRecord(r) for r in default]


class MockRecord:
    """Mock Neo4j record for testing."""

    def __init__(self, data: dict) -> None:
        self._data = data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def keys(self) -> list[str]:
        return list(self._data.keys())


class MockTransaction:
    """Mock Neo4j explicit transaction for testing."""

    def __init__(self, session: MockSession) -> None:
        self._session = session
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def run(self, query: str, **kwargs: Any) -> list[MockRecord]:
        self._session.queries.append((query, kwargs))
        return _records_for(self._session.results, self._session.default_result, query)

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True

    def close(self) -> None:
        self.closed = True


class MockSession:
    """Mock Neo4j session for testing.

    Results are chosen by the first registered pattern found in the query.
    Every query run through the session or its transactions is recorded.
    """

    def __init__(self) -> None:
        self.results: dict[str, list[dict]] = {}
        self.default_result: list[dict] = []
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.transactions: list[MockTransaction] = []

    def set_result(self, query_pattern: str, records: list[dict]) -> None:
        """Set the records returned for queries containing ``query_pattern``."""
        self.results[query_pattern] = records

    def set_default_result(self, records: list[dict]) -> None:
        """Set the records returned when no pattern matches."""
        self.default_result = records

    def begin_transaction(self) -> MockTransaction:
        tx = MockTransaction(self)
        self.transactions.append(tx)
        return tx

    def run(self, query: str, **kwargs: Any) -> list[MockRecord]:
        self.queries.append((query, kwargs))
        return _records_for(self.results, self.default_result, query)

    def __enter__(self) -> MockSession:
        return self

    def __exit__(self, *args: Any) -> None:
        pass


class MockDriver:
    """Mock Neo4j driver for testing."""

    def __init__(self, session: MockSession | None = None) -> None:
        self._session = session or MockSession()
        self.databases: list[str] = []
        self.closed = False

    def session(self, database: str = "neo4j") -> MockSession:
        self.databases.append(database)
        return self._session

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def mock_neo4j_session() -> MockSession:
    """Provide a mock Neo4j session.

    Returns:
        MockSession instance with configurable results.
    """
    return MockSession()


@pytest.fixture
def mock_neo4j_driver(mock_neo4j_session: MockSession) -> MockDriver:
    """Provide a mock Neo4j driver wrapping ``mock_neo4j_session``.

    Returns:
        MockDriver instance.
    """
    return MockDriver(mock_neo4j_session)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set Neo4j environment variables and disable .env loading.

    Returns:
        The variables that were set.
    """
    env = {
        "NEO4J_URI": "neo4j+s://graph.example.com",
        "NEO4J_USERNAME": "mapper",
        "NEO4J_PASSWORD": "secret",
        "NEO4J_DATABASE": "ogm",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)
    return env
