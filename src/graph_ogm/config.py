"""Naming conventions and store configuration.

The constants here decide how mapper state is laid out in the graph:
which property carries the class tag, how ordered-list link edges and
size counters are named, and which edge property excludes an edge from
cascade-delete checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Property on every mapped node holding the Python class name
CLASSNAME_PROPERTY = "_classname"

# Edge property marking a relationship as ignorable for cascade deletes
CASCADE_IGNORE_PROPERTY = "_cascade_delete_incoming"

# Ordered lists: item -[<edge_type>#next]-> item
LIST_LINK_SUFFIX = "#next"

# Ordered lists: integer property <edge_type>_size on the owning node
LIST_COUNTER_SUFFIX = "_size"

# Relationship namespace tags look like "Person#friends"
NAMESPACE_SEPARATOR = "#"

# Label given to nodes created through Neo4jGraphStore
DEFAULT_NODE_LABEL = "MappedNode"


def list_link_type(edge_type: str) -> str:
    """Return the edge type linking consecutive items of a list."""
    return f"{edge_type}{LIST_LINK_SUFFIX}"


def list_counter_property(edge_type: str) -> str:
    """Return the owner property holding a list's size counter."""
    return f"{edge_type}{LIST_COUNTER_SUFFIX}"


@dataclass
class Neo4jStoreConfig:
    """Connection settings for Neo4jGraphStore."""

    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: str = ""
    database: str = "neo4j"
    node_label: str = DEFAULT_NODE_LABEL

    @classmethod
    def from_env(cls) -> Neo4jStoreConfig:
        """Create configuration from environment variables.

        Reads from standard environment variables:
        - NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD, NEO4J_DATABASE

        Returns:
            Configuration populated from environment.

        Raises:
            ValueError: If NEO4J_PASSWORD is missing.
        """
        import os

        from dotenv import load_dotenv

        load_dotenv()

        password = os.getenv("NEO4J_PASSWORD", "")
        if not password:
            msg = "NEO4J_PASSWORD environment variable is required"
            raise ValueError(msg)

        return cls(
            uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
            username=os.getenv("NEO4J_USERNAME", "neo4j"),
            password=password,
            database=os.getenv("NEO4J_DATABASE", "neo4j"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (excluding the password).

        Returns:
            Dictionary representation safe for logging.
        """
        return {
            "uri": self.uri,
            "username": self.username,
            "database": self.database,
            "node_label": self.node_label,
        }
