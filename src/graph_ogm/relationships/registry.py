"""Registry of declared relationships, one per class tree.

All classes below a root class share a single registry, so a lookup on a
subclass sees every relationship declared anywhere up to the root.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import structlog

from graph_ogm.exceptions import UnknownRelationship
from graph_ogm.relationships.schema import Cardinality, RelationshipSchema
from graph_ogm.singleton import PerRootClass

if TYPE_CHECKING:
    from graph_ogm.node import Node

logger = structlog.get_logger(__name__)


class RelationshipRegistry(PerRootClass):
    """Relationship name to schema mapping for one root class.

    Example:
        >>> registry = RelationshipRegistry.instance(Person)
        >>> registry.declare("friends", Cardinality.MANY, Person).to(Person)
        >>> registry.lookup("friends").edge_type
        'friends'
    """

    def __init__(self, root: type[Node]) -> None:
        super().__init__(root)
        self._schemas: dict[str, RelationshipSchema] = {}

    def declare(
        self,
        name: str,
        cardinality: Cardinality,
        owner: type[Node],
        **params: Any,
    ) -> RelationshipSchema:
        """Record a relationship schema.

        Args:
            name: Relationship name.
            cardinality: one, many or list.
            owner: Declaring class.
            **params: Passed to RelationshipSchema (edge_type, direction,
                counter, stores_edges).

        Returns:
            The new schema, for chaining ``to``/``from_``.
        """
        if name in self._schemas:
            logger.warning(
                "Relationship redeclared",
                root=self.root.__name__,
                name=name,
                previous=self._schemas[name].owner.__name__,
                owner=owner.__name__,
            )
        schema = RelationshipSchema(name, cardinality, owner, **params)
        self._schemas[name] = schema
        logger.debug(
            "Declared relationship",
            root=self.root.__name__,
            owner=owner.__name__,
            name=name,
            cardinality=cardinality.value,
        )
        return schema

    def lookup(self, name: str) -> RelationshipSchema:
        """Return the schema declared as ``name``.

        Raises:
            UnknownRelationship: If no class in the tree declares it.
        """
        schema = self._schemas.get(name)
        if schema is None:
            raise UnknownRelationship(self.root.__name__, name)
        return schema

    def get(self, name: str) -> RelationshipSchema | None:
        """Return the schema declared as ``name``, or None."""
        return self._schemas.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[RelationshipSchema]:
        return iter(list(self._schemas.values()))

    def __len__(self) -> int:
        return len(self._schemas)
