"""GraphStore implementation backed by the official Neo4j driver.

Every call is translated into a small Cypher statement addressed by
``elementId``. Mutations run in the transaction opened by
:meth:`Neo4jGraphStore.transaction`; reads outside a transaction use a
short-lived session.

Example:
    >>> store = Neo4jGraphStore.from_config(Neo4jStoreConfig.from_env())
    >>> with store.transaction():
    ...     ref = store.create_node()
    >>> store.close()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.config import DEFAULT_NODE_LABEL, Neo4jStoreConfig
from graph_ogm.exceptions import NoActiveTransaction
from graph_ogm.store.base import Direction, EdgeEnd

if TYPE_CHECKING:
    from neo4j import Driver, Record, Transaction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Neo4jRef:
    """Reference to a Neo4j node or relationship by element id."""

    kind: str  # "node" or "edge"
    element_id: str


def _quote(name: str) -> str:
    """Quote a label or relationship type for interpolation into Cypher."""
    return "`" + name.replace("`", "``") + "`"


class Neo4jGraphStore:
    """GraphStore over a Neo4j database.

    Args:
        driver: Neo4j driver instance.
        database: Database name.
        node_label: Label put on every node this store creates.
    """

    def __init__(
        self,
        driver: Driver,
        database: str = "neo4j",
        node_label: str = DEFAULT_NODE_LABEL,
    ) -> None:
        self.driver = driver
        self.database = database
        self.node_label = node_label
        self._tx: Transaction | None = None

    @classmethod
    def from_config(cls, config: Neo4jStoreConfig) -> Neo4jGraphStore:
        """Create a store and its driver from configuration.

        Args:
            config: Connection settings.

        Returns:
            A store owning a new driver.
        """
        from neo4j import GraphDatabase

        driver = GraphDatabase.driver(config.uri, auth=(config.username, config.password))
        logger.info("Connected Neo4j graph store", **config.to_dict())
        return cls(driver, database=config.database, node_label=config.node_label)

    def close(self) -> None:
        """Close the underlying driver."""
        self.driver.close()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Neo4jGraphStore]:
        """Open an explicit transaction, or join the active one.

        Commits when the block exits normally and rolls back when it raises.
        """
        if self._tx is not None:
            yield self
            return

        with self.driver.session(database=self.database) as session:
            tx = session.begin_transaction()
            self._tx = tx
            try:
                yield self
            except BaseException:
                tx.rollback()
                logger.debug("Neo4j transaction rolled back")
                raise
            else:
                tx.commit()
            finally:
                self._tx = None
                tx.close()

    def _write(self, operation: str, query: str, **params: Any) -> list[Record]:
        if self._tx is None:
            raise NoActiveTransaction(operation)
        return list(self._tx.run(query, **params))

    def _read(self, query: str, **params: Any) -> list[Record]:
        if self._tx is not None:
            return list(self._tx.run(query, **params))
        with self.driver.session(database=self.database) as session:
            return list(session.run(query, **params))

    @staticmethod
    def _match(ref: Neo4jRef) -> str:
        if ref.kind == "node":
            return "MATCH (x) WHERE elementId(x) = $id"
        return "MATCH ()-[x]->() WHERE elementId(x) = $id"

    # -------------------------------------------------------------------------
    # Nodes and properties
    # -------------------------------------------------------------------------

    def create_node(self) -> Neo4jRef:
        records = self._write(
            "create_node", f"CREATE (n:{_quote(self.node_label)}) RETURN elementId(n) AS id"
        )
        return Neo4jRef("node", records[0]["id"])

    def delete_node(self, node: Neo4jRef) -> None:
        self._write("delete_node", f"{self._match(node)} DELETE x", id=node.element_id)

    def get_property(self, ref: Neo4jRef, name: str) -> Any:
        records = self._read(
            f"{self._match(ref)} RETURN x[$name] AS value", id=ref.element_id, name=name
        )
        return records[0]["value"] if records else None

    def set_property(self, ref: Neo4jRef, name: str, value: Any) -> None:
        self._write(
            "set_property",
            f"{self._match(ref)} SET x += $props",
            id=ref.element_id,
            props={name: value},
        )

    def delete_property(self, ref: Neo4jRef, name: str) -> None:
        # assigning null through a map removes the property
        self._write(
            "delete_property",
            f"{self._match(ref)} SET x += $props",
            id=ref.element_id,
            props={name: None},
        )

    def properties(self, ref: Neo4jRef) -> dict[str, Any]:
        records = self._read(f"{self._match(ref)} RETURN properties(x) AS props", id=ref.element_id)
        return dict(records[0]["props"]) if records else {}

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def create_edge(self, start: Neo4jRef, end: Neo4jRef, edge_type: str) -> Neo4jRef:
        query = f"""
        MATCH (a), (b)
        WHERE elementId(a) = $start AND elementId(b) = $end
        CREATE (a)-[r:{_quote(edge_type)}]->(b)
        RETURN elementId(r) AS id
        """
        records = self._write(
            "create_edge", query, start=start.element_id, end=end.element_id
        )
        return Neo4jRef("edge", records[0]["id"])

    def delete_edge(self, edge: Neo4jRef) -> None:
        self._write("delete_edge", f"{self._match(edge)} DELETE x", id=edge.element_id)

    def edges(
        self,
        node: Neo4jRef,
        edge_type: str | None = None,
        direction: Direction = Direction.BOTH,
    ) -> list[Neo4jRef]:
        rel = f"[r:{_quote(edge_type)}]" if edge_type else "[r]"
        if direction is Direction.OUTGOING:
            pattern = f"(n)-{rel}->()"
        elif direction is Direction.INCOMING:
            pattern = f"(n)<-{rel}-()"
        else:
            pattern = f"(n)-{rel}-()"
        query = f"""
        MATCH {pattern}
        WHERE elementId(n) = $id
        RETURN DISTINCT elementId(r) AS id
        """
        return [Neo4jRef("edge", record["id"]) for record in self._read(query, id=node.element_id)]

    def endpoint(self, edge: Neo4jRef, which: EdgeEnd) -> Neo4jRef:
        query = """
        MATCH (a)-[r]->(b)
        WHERE elementId(r) = $id
        RETURN elementId(a) AS start, elementId(b) AS end
        """
        record = self._read(query, id=edge.element_id)[0]
        return Neo4jRef("node", record["start" if which is EdgeEnd.START else "end"])

    def edge_type(self, edge: Neo4jRef) -> str:
        records = self._read(f"{self._match(edge)} RETURN type(x) AS type", id=edge.element_id)
        return records[0]["type"]
