"""Index rule records.

A property rule says "index property P of class C". A relationship rule
says "when property P changes on a node at the far end of relationship R,
reindex field ``R.P`` of the node at the near end". The far end is the
trigger, the near end (the class that declared the index) is the updater.

Either kind may carry a field type (``Person.index("age", type=int)``).
Indexed values and query values for that field are then validated into
the type with pydantic, so ``find(age="42")`` matches a stored ``42``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter

from graph_ogm.store.base import Direction

if TYPE_CHECKING:
    from graph_ogm.node import Node


@dataclass(frozen=True)
class PropertyIndexRule:
    """Index a property of every node in a class tree."""

    owner: type[Node]
    property_name: str
    field_type: Any = dataclasses.field(default=None, compare=False)


@dataclass(frozen=True)
class RelationshipIndexRule:
    """Reindex the updater when a property of a related trigger node changes.

    Attributes:
        trigger_class: Class whose property changes start a reindex.
        updater_class: Class whose index entry is refreshed.
        relationship_name: Relationship on the updater class.
        edge_type: Stored edge type of the relationship.
        property_name: Property of the trigger node being indexed.
        namespace: Tag of the relationship the rule belongs to.
        direction: Edge direction seen from the updater.
        ordered: Whether the relationship is an ordered list.
        field_type: Type indexed values are validated into, or None.
    """

    trigger_class: type[Node]
    updater_class: type[Node]
    relationship_name: str
    edge_type: str
    property_name: str
    namespace: str
    direction: Direction = Direction.OUTGOING
    ordered: bool = False
    field_type: Any = dataclasses.field(default=None, compare=False)

    @property
    def field(self) -> str:
        """Index field on the updater, e.g. ``friends.name``."""
        return f"{self.relationship_name}.{self.property_name}"


@lru_cache(maxsize=None)
def _type_adapter(field_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(field_type)


def coerce_field_value(field_type: Any, value: Any) -> Any:
    """Validate ``value`` (or each element of a list value) into ``field_type``.

    Raises:
        pydantic.ValidationError: If a value does not fit the type.
    """
    if field_type is None or value is None:
        return value
    adapter = _type_adapter(field_type)
    if isinstance(value, list):
        return [adapter.validate_python(item) for item in value]
    return adapter.validate_python(value)
