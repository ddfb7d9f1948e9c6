"""Declared relationship metadata.

A RelationshipSchema is created by the declarators on Node (has_one,
has_many, has_list, belongs_to_list) and refined with the chaining
methods ``to`` and ``from_``:

    Person.has_one("address").to("Address")
    Address.has_many("people").from_(Person, "address")

Target classes may be given by name and are resolved on first use, so a
declaration can refer to a class defined later in the module. Once a
schema has been used it is frozen.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from graph_ogm.classes import node_classes
from graph_ogm.config import NAMESPACE_SEPARATOR
from graph_ogm.exceptions import SchemaFrozenError
from graph_ogm.store.base import Direction

if TYPE_CHECKING:
    from graph_ogm.node import Node

logger = structlog.get_logger(__name__)


class Cardinality(str, Enum):
    """How many endpoints a relationship holds."""

    ONE = "one"
    MANY = "many"
    LIST = "list"


class RelationshipSchema:
    """Metadata of one declared relationship.

    Attributes:
        name: Relationship name, also the accessor name on the owner.
        cardinality: one, many or list.
        owner: Class the relationship was declared on.
        direction: Edge direction as seen from the owner.
        counter: Whether a list keeps a size counter on the owner.
        stores_edges: False for belongs_to_list declarations, which only
            describe list membership from the item side.
    """

    def __init__(
        self,
        name: str,
        cardinality: Cardinality,
        owner: type[Node],
        *,
        edge_type: str | None = None,
        direction: Direction = Direction.OUTGOING,
        counter: bool = False,
        stores_edges: bool = True,
    ) -> None:
        self.name = name
        self.cardinality = cardinality
        self.owner = owner
        self.direction = direction
        self.counter = counter
        self.stores_edges = stores_edges
        self._edge_type = edge_type
        self._target: type[Node] | str | None = None
        self._far_name: str | None = None
        self._frozen = False

    def __repr__(self) -> str:
        return (
            f"RelationshipSchema({self.owner.__name__}.{self.name}, "
            f"{self.cardinality.value}, {self.direction.value})"
        )

    # -------------------------------------------------------------------------
    # Declaration chaining
    # -------------------------------------------------------------------------

    def to(self, target: type[Node] | str) -> RelationshipSchema:
        """Point the relationship at ``target`` with outgoing edges.

        Args:
            target: Target class, or its name for a forward reference.
        """
        self._check_mutable()
        self.direction = Direction.OUTGOING
        self._target = target
        self._far_name = None
        return self

    def from_(self, source: type[Node] | str, name: str | None = None) -> RelationshipSchema:
        """Make the relationship incoming.

        ``from_(Person, "address")`` reuses the edges of Person's
        ``address`` relationship. ``from_("knows")`` reads incoming edges
        of the raw edge type ``knows`` from any class.

        Args:
            source: Source class (or its name), or a raw edge type when
                ``name`` is omitted.
            name: Relationship on the source class owning the edges.
        """
        self._check_mutable()
        self.direction = Direction.INCOMING
        if name is None:
            if not isinstance(source, str):
                self._target = source
            else:
                self._edge_type = source
                self._target = None
            self._far_name = None
        else:
            self._target = source
            self._far_name = name
        return self

    def relationship(self, edge_type: str) -> RelationshipSchema:
        """Override the stored edge type."""
        self._check_mutable()
        self._edge_type = edge_type
        return self

    def freeze(self) -> RelationshipSchema:
        """Mark the schema as used; later chaining calls fail."""
        if not self._frozen:
            self._frozen = True
            logger.debug(
                "Relationship schema frozen",
                owner=self.owner.__name__,
                name=self.name,
                edge_type=self.edge_type,
            )
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise SchemaFrozenError(self.name)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    @property
    def has_target(self) -> bool:
        """Whether a target class (or class name) was declared."""
        return self._target is not None

    @property
    def target_class(self) -> type[Node] | None:
        """The resolved target class, or None when none was declared.

        Raises:
            UnresolvedTargetClass: If the target was given by a name that
                no class has registered.
        """
        if self._target is None:
            return None
        return node_classes.resolve(self._target)

    @property
    def far_name(self) -> str | None:
        """Name of the relationship on the far class this one mirrors."""
        return self._far_name

    def far_schema(self) -> RelationshipSchema | None:
        """The far class's schema mirrored by ``from_(cls, name)``.

        Raises:
            UnknownRelationship: If the far class does not declare it.
        """
        if self._far_name is None:
            return None
        target = self.target_class
        if target is None:
            return None
        return target.relationships().lookup(self._far_name)

    @property
    def edge_type(self) -> str:
        """Edge type stored in the graph; defaults to the relationship name."""
        far = self.far_schema()
        if far is not None:
            return far.edge_type
        return self._edge_type or self.name

    @property
    def namespace(self) -> str:
        """Tag telling relationships that share an edge type apart."""
        far = self.far_schema()
        if far is not None:
            return far.namespace
        return f"{self.owner.__name__}{NAMESPACE_SEPARATOR}{self.name}"
