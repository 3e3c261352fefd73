"""
Unit tests for the record registry.

Tests cover:
- Record class registration
- Registry freezing
- Duplicate detection
- Resolving registered type names
"""

import pytest

from entdb_variation import ConfigurationError
from entdb_variation.registry import (
    DuplicateRegistrationError,
    RecordRegistry,
    RegistryFrozenError,
    get_registry,
    register_record_type,
    resolve_record_class,
)
from entdb_variation.schema import RecordTypeDef, field
from entdb_variation.record import Record

from ..models import ItemTranslation, Language


class TestRecordRegistry:
    """Tests for RecordRegistry."""

    def test_register_record_class(self):
        """Can register a record class."""
        registry = RecordRegistry()

        registry.register(Language)

        assert registry.get_record_class("Language") is Language
        assert registry.get_record_class("Missing") is None

    def test_register_same_class_twice(self):
        """Registering the same class again is a no-op."""
        registry = RecordRegistry()

        registry.register(Language)
        registry.register(Language)

        assert list(registry.record_classes()) == [Language]

    def test_duplicate_name_raises(self):
        """Another class with the same type name is rejected."""
        registry = RecordRegistry()
        registry.register(Language)

        class OtherLanguage(Record):
            record_type = RecordTypeDef(name="Language", fields=(field("id", "int"),))

        with pytest.raises(DuplicateRegistrationError, match="'Language' already registered"):
            registry.register(OtherLanguage)

    def test_frozen_registry_rejects_registration(self):
        """Cannot register after freeze."""
        registry = RecordRegistry()
        registry.freeze()

        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register(Language)

    def test_double_freeze_raises(self):
        """Freezing twice raises."""
        registry = RecordRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError, match="already frozen"):
            registry.freeze()

    def test_to_dict(self):
        """Registered types serialize sorted by name."""
        registry = RecordRegistry()
        registry.register(Language)
        registry.register(ItemTranslation)

        names = [t["name"] for t in registry.to_dict()["record_types"]]

        assert names == ["ItemTranslation", "Language"]


class TestGlobalRegistry:
    """Tests for the global registry helpers."""

    def test_language_registered_by_fixture(self):
        """The shared fixture registers the option type."""
        assert get_registry().get_record_class("Language") is Language

    def test_register_decorator(self):
        """register_record_type works as a class decorator."""

        @register_record_type
        class Country(Record):
            record_type = RecordTypeDef(name="Country", fields=(field("id", "int"),))

        assert get_registry().get_record_class("Country") is Country

    def test_resolve_class_passthrough(self):
        """Record classes resolve to themselves."""
        assert resolve_record_class(Language) is Language

    def test_resolve_registered_name(self):
        """Registered names resolve to their class."""
        assert resolve_record_class("Language") is Language

    def test_resolve_unknown_name_raises(self):
        """Unknown names raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="'Country' is not registered"):
            resolve_record_class("Country")
