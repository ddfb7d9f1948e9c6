"""Declared node properties, shared by a class tree.

Declaring a property makes it available as an attribute on every class
of the tree. A property declared with a ``type`` is marshalled: its value
is stored as JSON produced by a pydantic TypeAdapter and validated back
into that type on read. Undeclared properties can still be stored with
item access (``node["colour"] = "red"``).

Example:
    >>> Person.has_property("name", "city")
    >>> Person.has_property("born", type=datetime.date)
    >>> Person.properties().is_marshalled("born")
    True
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, TypeAdapter, computed_field

from graph_ogm.singleton import PerRootClass

if TYPE_CHECKING:
    from graph_ogm.node import Node

logger = structlog.get_logger(__name__)


class PropertyInfo(BaseModel):
    """Metadata of one declared property.

    Attributes:
        name: Property name.
        marshal_type: Python type values are marshalled as, or None for
            values the graph store handles natively.
        options: Any other declaration options.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(description="Property name")
    marshal_type: Any = Field(default=None, description="Type values are marshalled as")
    options: dict[str, Any] = Field(default_factory=dict, description="Extra options")

    _adapter: TypeAdapter[Any] | None = PrivateAttr(default=None)

    @computed_field
    @property
    def marshalled(self) -> bool:
        """Whether values are stored as marshalled JSON."""
        return self.marshal_type is not None

    def _type_adapter(self) -> TypeAdapter[Any]:
        if self._adapter is None:
            self._adapter = TypeAdapter(self.marshal_type)
        return self._adapter

    def to_store(self, value: Any) -> Any:
        """Convert a Python value to what gets stored."""
        if not self.marshalled or value is None:
            return value
        return self._type_adapter().dump_json(value).decode()

    def from_store(self, raw: Any) -> Any:
        """Convert a stored value back to Python."""
        if not self.marshalled or raw is None:
            return raw
        return self._type_adapter().validate_json(raw)


class PropertyRegistry(PerRootClass):
    """Declared properties of one class tree."""

    def __init__(self, root: type[Node]) -> None:
        super().__init__(root)
        self._properties: dict[str, PropertyInfo] = {}

    def declare(self, name: str, **options: Any) -> PropertyInfo:
        """Declare ``name``, merging options into an earlier declaration.

        Args:
            name: Property name.
            **options: ``type`` selects marshalling; anything else is kept
                in ``PropertyInfo.options``.

        Returns:
            The property's metadata.
        """
        info = self._properties.get(name) or PropertyInfo(name=name)
        if "type" in options:
            info.marshal_type = options.pop("type")
            info._adapter = None
        info.options.update(options)
        self._properties[name] = info
        logger.debug(
            "Declared property",
            root=self.root.__name__,
            name=name,
            marshalled=info.marshalled,
        )
        return info

    def get(self, name: str) -> PropertyInfo | None:
        """Return the metadata of ``name``, or None."""
        return self._properties.get(name)

    def is_declared(self, name: str) -> bool:
        """Whether ``name`` was declared with has_property.

        A node may still store properties that were never declared.
        """
        return name in self._properties

    def is_marshalled(self, name: str) -> bool:
        """Whether values of ``name`` are marshalled."""
        info = self._properties.get(name)
        return info is not None and info.marshalled

    def names(self) -> list[str]:
        """Names of all declared properties."""
        return list(self._properties)

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __iter__(self) -> Iterator[PropertyInfo]:
        return iter(list(self._properties.values()))
