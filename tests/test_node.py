"""Tests for node identity, lifecycle and property access."""

from __future__ import annotations

import gc

import pytest

import graph_ogm
from graph_ogm import (
    CASCADE_IGNORE_PROPERTY,
    CLASSNAME_PROPERTY,
    InMemoryGraphStore,
    NoActiveTransaction,
    Node,
    RuntimeNotStartedError,
)


class Gadget(Node):
    pass


Gadget.has_property("name", "colour")
Gadget.has_many("parts").to("Gadget")


class SmartGadget(Gadget):
    pass


class Widget(Node):
    def init_node(self, name: str, size: int = 1) -> None:
        self.name = name
        self["size"] = size


Widget.has_property("name")


# =============================================================================
# IDENTITY (P1)
# =============================================================================


class TestIdentity:
    """Tests for wrapper identity and equality."""

    def test_load_returns_cached_wrapper(self, store: InMemoryGraphStore) -> None:
        """Verify repeated loads return the very same wrapper."""
        gadget = Gadget(name="g")

        assert Gadget.load(gadget.ref) is gadget
        assert Node.load(gadget.ref) is gadget

    def test_load_after_wrapper_dropped(self, store: InMemoryGraphStore) -> None:
        """Verify a dropped wrapper is rebuilt from the class tag."""
        ref = SmartGadget(name="s").ref
        gc.collect()

        first = Node.load(ref)
        second = Node.load(ref)

        assert type(first) is SmartGadget
        assert first is second
        assert first.name == "s"

    def test_equality_follows_reference(self, store: InMemoryGraphStore) -> None:
        """Verify equality and hash agree with the node reference."""
        a = Gadget()
        b = Gadget()
        alias = Gadget.wrap(a.ref)

        assert alias == a
        assert hash(alias) == hash(a.ref)
        assert a != b
        assert len({a, alias, b}) == 2

    def test_untagged_node_loads_as_default_class(self, store: InMemoryGraphStore) -> None:
        """Verify nodes without a class tag fall back to the requested class."""
        ref = store.create_node()

        assert type(Gadget.load(ref)) is Gadget

    def test_subclass_shares_root_registries(self) -> None:
        """Verify subclasses use the root class's registries."""
        assert SmartGadget.root_class() is Gadget
        assert SmartGadget.relationships() is Gadget.relationships()
        assert SmartGadget.properties() is Gadget.properties()
        assert SmartGadget.indexer() is Gadget.indexer()
        assert Widget.root_class() is Widget


# =============================================================================
# CREATION
# =============================================================================


class TestCreation:
    """Tests for the create path."""

    def test_class_tag_is_stored(self, store: InMemoryGraphStore) -> None:
        """Verify the class name is persisted on the node."""
        gadget = SmartGadget()

        assert store.get_property(gadget.ref, CLASSNAME_PROPERTY) == "SmartGadget"

    def test_keyword_arguments_become_properties(self, store: InMemoryGraphStore) -> None:
        """Verify kwargs set declared and undeclared properties."""
        gadget = Gadget(name="g", weight=3)

        assert gadget.name == "g"
        assert gadget["weight"] == 3

    def test_keyword_argument_sets_relationship(self, store: InMemoryGraphStore) -> None:
        """Verify kwargs naming a relationship go through the accessor."""
        part = Gadget()

        with pytest.raises(graph_ogm.InvalidCardinality):
            Gadget(parts=part)

    def test_init_node_runs_on_create(self, store: InMemoryGraphStore) -> None:
        """Verify init_node receives the constructor arguments."""
        widget = Widget("w", size=4)

        assert widget.name == "w"
        assert widget["size"] == 4

    def test_init_node_not_run_on_load(self, store: InMemoryGraphStore) -> None:
        """Verify loading an existing node does not re-run init_node."""
        ref = Widget("w").ref
        store.set_property(ref, "name", "renamed")
        gc.collect()

        assert Widget.load(ref).name == "renamed"

    def test_positional_arguments_need_init_node(self, store: InMemoryGraphStore) -> None:
        """Verify positional args are rejected without init_node."""
        with pytest.raises(TypeError, match="keyword arguments only"):
            Gadget("g")

    def test_requires_started_runtime(self) -> None:
        """Verify creating a node without a runtime fails."""
        graph_ogm.stop()

        with pytest.raises(RuntimeNotStartedError):
            Gadget()

    def test_requires_transaction(self, bare_store: InMemoryGraphStore) -> None:
        """Verify the store rejects creation outside a transaction."""
        with pytest.raises(NoActiveTransaction):
            Gadget()


# =============================================================================
# PROPERTIES
# =============================================================================


class TestProperties:
    """Tests for property access."""

    def test_declared_property_attribute(self, store: InMemoryGraphStore) -> None:
        """Verify declared properties read and write as attributes."""
        gadget = Gadget()
        assert gadget.colour is None

        gadget.colour = "red"
        assert gadget.colour == "red"
        assert gadget.get("colour") == "red"

    def test_item_access_for_undeclared(self, store: InMemoryGraphStore) -> None:
        """Verify undeclared properties use item syntax."""
        gadget = Gadget()
        gadget["serial"] = "X1"

        assert gadget["serial"] == "X1"
        assert "serial" in gadget

        del gadget["serial"]
        assert "serial" not in gadget

    def test_set_none_removes(self, store: InMemoryGraphStore) -> None:
        """Verify writing None deletes the stored property."""
        gadget = Gadget(name="g")
        gadget.name = None

        assert "name" not in store.properties(gadget.ref)

    def test_props_returns_everything(self, store: InMemoryGraphStore) -> None:
        """Verify props includes the class tag and all properties."""
        gadget = Gadget(name="g", weight=2)

        assert gadget.props() == {CLASSNAME_PROPERTY: "Gadget", "name": "g", "weight": 2}

    def test_undeclared_attribute_raises(self, store: InMemoryGraphStore) -> None:
        """Verify unknown attributes raise AttributeError."""
        gadget = Gadget()

        with pytest.raises(AttributeError, match="no attribute or declared property"):
            _ = gadget.flavour

    def test_plain_attribute_assignment(self, store: InMemoryGraphStore) -> None:
        """Verify undeclared attributes stay on the wrapper."""
        gadget = Gadget()
        gadget.scratch = 1

        assert gadget.scratch == 1
        assert "scratch" not in store.properties(gadget.ref)


# =============================================================================
# DELETION
# =============================================================================


class TestDeletion:
    """Tests for deletion and cascade checks."""

    def test_delete_removes_node_and_edges(self, store: InMemoryGraphStore) -> None:
        """Verify delete detaches the node first."""
        gadget = Gadget()
        part = Gadget()
        gadget.parts.append(part)

        part.delete()

        assert not store.has_node(part.ref)
        assert list(gadget.parts) == []

    def test_cascade_ignorable_marker(self, store: InMemoryGraphStore) -> None:
        """Verify the marker property makes an edge cascade-ignorable."""
        gadget = Gadget()
        relationship = gadget.parts.append(Gadget())

        assert not Node.is_cascade_ignorable(relationship)
        relationship[CASCADE_IGNORE_PROPERTY] = True
        assert Node.is_cascade_ignorable(relationship)

    def test_cascade_deletable_checks_incoming(self, store: InMemoryGraphStore) -> None:
        """Verify only incoming edges decide cascade deletability."""
        gadget = Gadget()
        part = Gadget()
        relationship = gadget.parts.append(part)

        assert gadget.is_cascade_deletable()
        assert not part.is_cascade_deletable()

        relationship[CASCADE_IGNORE_PROPERTY] = True
        assert part.is_cascade_deletable()
