"""
Record type registry for entdb-variation.

This module provides a registry of record classes so behavior options
such as ``option_entity_type`` can name a type instead of importing it.

The registry can be frozen at startup to prevent runtime modifications.

Example:
    >>> @register_record_type
    ... class Language(Record):
    ...     record_type = RecordTypeDef(name="Language", fields=(field("id", "int"),))
    >>> get_registry().get_record_class("Language") is Language
    True
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .record import Record

# Global registry
_global_registry: RecordRegistry | None = None
_registry_lock = threading.Lock()


class RegistryFrozenError(Exception):
    """Registry is frozen and cannot be modified."""

    pass


class DuplicateRegistrationError(Exception):
    """A record type with this name is already registered."""

    pass


class RecordRegistry:
    """Registry of record classes by record type name.

    Example:
        >>> registry = RecordRegistry()
        >>> registry.register(Language)
        >>> registry.freeze()
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._classes: dict[str, type[Record]] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether registry is frozen."""
        return self._frozen

    def register(self, record_class: type[Record]) -> None:
        """Register a record class under its record type name.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If another class has the same type name
        """
        name = record_class.record_type.name
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Cannot register: registry is frozen")

            existing = self._classes.get(name)
            if existing is not None and existing is not record_class:
                raise DuplicateRegistrationError(
                    f"record type '{name}' already registered as {existing.__qualname__}"
                )

            self._classes[name] = record_class

    def get_record_class(self, name: str) -> type[Record] | None:
        """Get record class by type name."""
        return self._classes.get(name)

    def record_classes(self) -> Iterator[type[Record]]:
        """Iterate over all registered classes."""
        yield from self._classes.values()

    def freeze(self) -> None:
        """Freeze registry.

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")
            self._frozen = True

    def to_dict(self) -> dict[str, Any]:
        """Convert registered record types to a dictionary."""
        return {
            "record_types": [
                self._classes[name].record_type.to_dict() for name in sorted(self._classes)
            ],
        }


def get_registry() -> RecordRegistry:
    """Get the global record registry."""
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            _global_registry = RecordRegistry()
        return _global_registry


def register_record_type(record_class: type[Record]) -> type[Record]:
    """Register a record class in the global registry (usable as decorator)."""
    get_registry().register(record_class)
    return record_class


def resolve_record_class(record_type: Any) -> type[Record]:
    """Resolve a record class or registered type name to a record class.

    Raises:
        ConfigurationError: If a name is not registered
    """
    if isinstance(record_type, str):
        record_class = get_registry().get_record_class(record_type)
        if record_class is None:
            raise ConfigurationError(
                f"Record type '{record_type}' is not registered.",
                setting="option_entity_type",
            )
        return record_class
    return record_type


def reset_registry() -> None:
    """Reset the global registry (for testing only)."""
    global _global_registry
    with _registry_lock:
        _global_registry = None
