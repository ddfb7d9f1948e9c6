"""Initialize-once instances keyed by root node class.

Relationship registries, property registries and indexers all exist once
per class tree. The first caller asking for a root class constructs the
instance; every later caller gets the same object. Instances are never
torn down.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

if TYPE_CHECKING:
    from graph_ogm.node import Node

T = TypeVar("T", bound="PerRootClass")


class PerRootClass:
    """Base for classes with one instance per root node class."""

    _instances: ClassVar[dict[type, Any]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._instances = {}

    def __init__(self, root: type[Node]) -> None:
        self.root = root

    @classmethod
    def instance(cls: type[T], root: type[Node]) -> T:
        """Return the instance for ``root``, creating it on first request."""
        existing = cls._instances.get(root)
        if existing is not None:
            return existing
        with cls._lock:
            existing = cls._instances.get(root)
            if existing is None:
                existing = cls(root)
                cls._instances[root] = existing
        return existing
