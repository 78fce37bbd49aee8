"""Unit tests for the type registry."""

import logging
from collections import OrderedDict

import pytest

from rulewire_di.application.type_registry import TypeRegistry
from rulewire_di.domain.exceptions import MalformedRuleError, TypeNotFoundError
from rulewire_di.domain.identifiers import identifier_of


class Gadget:
    pass


class TestTypeRegistryFind:
    """Test cases for TypeRegistry.find."""

    def test_class_is_returned_and_registered(self):
        """Test that passing a class registers it."""
        registry = TypeRegistry()

        assert registry.find(Gadget) is Gadget
        assert registry.find(identifier_of(Gadget).upper()) is Gadget

    def test_registered_local_class_is_found_by_name(self):
        """Test that classes not importable by name are found once registered."""

        class LocalService:
            pass

        registry = TypeRegistry()
        registry.register(LocalService)

        assert registry.find(identifier_of(LocalService)) is LocalService
        assert registry.find(identifier_of(LocalService).lower()) is LocalService

    def test_dotted_name_is_imported(self):
        """Test resolving a class from an importable module."""
        registry = TypeRegistry()

        assert registry.find("collections.OrderedDict") is OrderedDict

    def test_dotted_name_is_case_insensitive(self):
        """Test that attribute lookup falls back to a case-insensitive match."""
        registry = TypeRegistry()

        assert registry.find("collections.ordereddict") is OrderedDict

    def test_single_name_is_looked_up_in_builtins(self):
        """Test resolving a builtin class by bare name."""
        registry = TypeRegistry()

        assert registry.find("ValueError") is ValueError

    def test_unknown_names_return_none(self):
        """Test that unresolvable names give None."""
        registry = TypeRegistry()

        assert registry.find("no_such_module_xyz.Thing") is None
        assert registry.find("$Virtual") is None
        assert registry.find(42) is None

    def test_non_class_attribute_returns_none(self):
        """Test that names of non-class objects give None."""
        registry = TypeRegistry()

        assert registry.find("logging.DEBUG") is None


class TestTypeRegistryLookup:
    """Test cases for TypeRegistry.lookup."""

    def test_lookup_returns_class(self):
        """Test a successful lookup."""
        assert TypeRegistry().lookup("collections.OrderedDict") is OrderedDict

    def test_missing_type_raises(self):
        """Test that unknown identifiers raise TypeNotFoundError."""
        with pytest.raises(TypeNotFoundError, match="no_such_module_xyz.Thing"):
            TypeRegistry().lookup("no_such_module_xyz.Thing")

    def test_non_class_raises_with_reason(self):
        """Test that naming a non-class object explains why."""
        with pytest.raises(TypeNotFoundError, match="does not name a class"):
            TypeRegistry().lookup("logging.DEBUG")


class TestTypeRegistryConstants:
    """Test cases for TypeRegistry.locate and constant."""

    def test_constant_value(self):
        """Test resolving a module-level constant."""
        assert TypeRegistry().constant("logging.DEBUG") == logging.DEBUG

    def test_nested_attribute(self):
        """Test resolving an attribute of a class."""
        assert TypeRegistry().constant("collections.OrderedDict.fromkeys") == OrderedDict.fromkeys

    def test_unknown_constant_raises(self):
        """Test that unresolvable constants raise MalformedRuleError."""
        with pytest.raises(MalformedRuleError, match="cannot be resolved"):
            TypeRegistry().constant("logging.NO_SUCH_LEVEL")

    def test_empty_segments_are_rejected(self):
        """Test that names with empty segments are not resolved."""
        with pytest.raises(MalformedRuleError):
            TypeRegistry().constant("logging..DEBUG")


class TestTypeRegistryClear:
    """Test cases for TypeRegistry.clear."""

    def test_clear_forgets_registered_classes(self):
        """Test that clear drops registered classes."""

        class LocalService:
            pass

        registry = TypeRegistry()
        registry.register(LocalService)
        registry.clear()

        assert registry.find(identifier_of(LocalService)) is None
