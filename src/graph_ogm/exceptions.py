"""Custom exceptions for the graph object mapper.

Provides a hierarchy of exceptions for different error conditions:
- GraphOgmError: Base exception for all mapper errors
- UnknownRelationship: A relationship name is not declared in the class tree
- InvalidCardinality: An operation does not fit the relationship's cardinality
- CounterNotEnabled: Size requested on a list declared without a counter
- AmbiguousDirection: A relationship index cannot tell trigger from updater
- NoActiveTransaction: A store mutation ran outside a transactional scope
- SchemaFrozenError: A relationship declaration was changed after first use
- UnresolvedTargetClass: A forward-referenced class name was never defined
- NotInList: An ordered-list operation referenced a node outside the list
- AlreadyInList: A node pushed onto a list is linked into another chain
- RuntimeNotStartedError: No graph store has been bound to the process

All of these are programmer errors. They are raised synchronously and
never retried.
"""

from __future__ import annotations


class GraphOgmError(Exception):
    """Base exception for mapper errors."""


class UnknownRelationship(GraphOgmError):
    """A relationship name is not declared anywhere in a class tree.

    Attributes:
        owner: Name of the class the lookup started from.
        name: The relationship name that was looked up.
    """

    def __init__(self, owner: str, name: str) -> None:
        """Initialize UnknownRelationship.

        Args:
            owner: Name of the class the lookup started from.
            name: The relationship name that was looked up.
        """
        self.owner = owner
        self.name = name
        super().__init__(f"No relationship '{name}' declared on {owner} or its ancestors")


class InvalidCardinality(GraphOgmError):
    """An operation was used on a relationship with the wrong cardinality."""

    def __init__(self, name: str, cardinality: str, operation: str) -> None:
        """Initialize InvalidCardinality.

        Args:
            name: Relationship name.
            cardinality: The relationship's declared cardinality.
            operation: The operation that is not allowed.
        """
        self.name = name
        self.cardinality = cardinality
        super().__init__(
            f"Cannot {operation} on relationship '{name}' with cardinality '{cardinality}'"
        )


class CounterNotEnabled(GraphOgmError):
    """List size was requested but the list keeps no size counter."""

    def __init__(self, name: str) -> None:
        """Initialize CounterNotEnabled.

        Args:
            name: Name of the list relationship.
        """
        self.name = name
        super().__init__(
            f"List '{name}' has no size counter. Declare it with has_list('{name}', counter=True)"
        )


class AmbiguousDirection(GraphOgmError):
    """A relationship index cannot resolve its trigger and updater classes."""

    def __init__(self, owner: str, name: str, reason: str) -> None:
        """Initialize AmbiguousDirection.

        Args:
            owner: Class declaring the index.
            name: Relationship name used in the index.
            reason: Why the direction could not be resolved.
        """
        self.owner = owner
        self.name = name
        super().__init__(f"Cannot index relationship '{name}' on {owner}: {reason}")


class NoActiveTransaction(GraphOgmError):
    """A mutating store call happened outside a transactional scope.

    Raised by GraphStore implementations, never by the mapper itself.
    """

    def __init__(self, operation: str) -> None:
        """Initialize NoActiveTransaction.

        Args:
            operation: The store operation that was attempted.
        """
        self.operation = operation
        super().__init__(f"'{operation}' requires an active transaction")


class SchemaFrozenError(GraphOgmError):
    """A relationship declaration was modified after it was first used."""

    def __init__(self, name: str) -> None:
        """Initialize SchemaFrozenError.

        Args:
            name: Relationship name.
        """
        self.name = name
        super().__init__(f"Relationship '{name}' is already in use and can no longer be changed")


class UnresolvedTargetClass(GraphOgmError):
    """A class referenced by name has not been defined."""

    def __init__(self, class_name: str) -> None:
        """Initialize UnresolvedTargetClass.

        Args:
            class_name: The name that failed to resolve.
        """
        self.class_name = class_name
        super().__init__(f"No node class named '{class_name}' has been defined")


class NotInList(GraphOgmError):
    """An ordered-list operation referenced a node that is not in the list."""

    def __init__(self, name: str, node: object) -> None:
        """Initialize NotInList.

        Args:
            name: Name of the list relationship.
            node: The node that was not found.
        """
        self.name = name
        super().__init__(f"{node!r} is not an item of list '{name}'")


class AlreadyInList(GraphOgmError):
    """A node pushed onto a list is still linked into another chain.

    Attributes:
        name: Name of the list relationship.
        owner: Owner of the list holding the node, or None when the node
            sits in a chain whose owner is gone.
    """

    def __init__(self, name: str, node: object, owner: object | None = None) -> None:
        """Initialize AlreadyInList.

        Args:
            name: Name of the list relationship.
            node: The node being inserted.
            owner: Owner of the list already holding the node, if any.
        """
        self.name = name
        self.owner = owner
        if owner is None:
            where = "an ownerless chain of stale list links"
        else:
            where = f"the list of {owner!r}"
        super().__init__(f"Cannot add {node!r} to list '{name}': it is already in {where}")


class RuntimeNotStartedError(GraphOgmError):
    """No graph store is bound. Call graph_ogm.start() first."""

    def __init__(self) -> None:
        """Initialize RuntimeNotStartedError."""
        super().__init__("No graph store configured. Call graph_ogm.start(store) first.")
