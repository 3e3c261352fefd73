"""
Base protocol for record store backends.

This module defines the RecordStore protocol that all backends must
implement, plus helpers shared by the backends for primary key handling.

Invariants:
    - Records are addressed by (record type name, normalized primary key)
    - find_all returns records in storage (insertion) order
    - update locates the row by the record's old primary key
    - Single-column auto-increment keys are assigned on insert when unset

How to change safely:
    - Protocol changes require updating all implementations
    - Keep key normalization identical across backends, so records written
      by one backend are matched the same way by the variation behaviors
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..errors import StorageError
from ..query import normalize_key

if TYPE_CHECKING:
    from ..config import Settings
    from ..query import Query
    from ..record import Record


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for record store backends.

    Durability and atomicity are per call: each insert/update/delete is
    applied completely or not at all. Nothing spans calls.

    Example:
        >>> store = InMemoryRecordStore()
        >>> store.insert(language)
        >>> store.find_all(Language.find(store))
        [Language({'id': 1, 'name': 'English'})]
    """

    @abstractmethod
    def find_all(self, query: Query) -> list[Record]:
        """Fetch records of the query's type matching the query.

        Returns:
            Records bound to this store, in storage order
        """
        ...

    @abstractmethod
    def insert(self, record: Record) -> None:
        """Store a new record.

        Raises:
            StorageError: If the key is incomplete or already stored
        """
        ...

    @abstractmethod
    def update(self, record: Record) -> bool:
        """Overwrite the stored row of a record.

        Raises:
            RecordNotFoundError: If no row exists under the old primary key
            StorageError: If the new primary key collides with another row
        """
        ...

    @abstractmethod
    def delete(self, record: Record) -> bool:
        """Delete the stored row of a record.

        Returns:
            True if a row was removed
        """
        ...

    @abstractmethod
    def count(self, record_class: type[Record]) -> int:
        """Number of stored records of a type."""
        ...


def storage_key(record: Record, value: Any) -> tuple[Any, ...]:
    """Normalized key tuple for a primary key value.

    Raises:
        StorageError: If any key column is unset
    """
    values = value if record.record_type.is_composite_key else (value,)
    if any(v is None for v in values):
        raise StorageError(
            f"{record.record_type.name} record has an incomplete primary key: {value!r}",
            type_name=record.record_type.name,
        )
    return tuple(normalize_key(v) for v in values)


def needs_generated_key(record: Record) -> bool:
    """Whether insert must assign an auto-increment key."""
    record_type = record.record_type
    return (
        record_type.auto_increment
        and not record_type.is_composite_key
        and record.get_primary_key() is None
    )


def explicit_integer_key(record: Record) -> int | None:
    """Integer value of an explicitly set single-column auto-increment key."""
    record_type = record.record_type
    if not record_type.auto_increment or record_type.is_composite_key:
        return None
    value = normalize_key(record.get_primary_key())
    return value if isinstance(value, int) else None


def create_record_store(settings: Settings) -> RecordStore:
    """Factory function to create a record store from settings.

    Raises:
        ValueError: If backend is not supported
    """
    from .memory import InMemoryRecordStore
    from .sqlite import SqliteRecordStore

    if settings.store_backend == "memory":
        return InMemoryRecordStore()
    elif settings.store_backend == "sqlite":
        store = SqliteRecordStore(
            settings.sqlite_path,
            wal_mode=settings.sqlite_wal_mode,
            busy_timeout_ms=settings.sqlite_busy_timeout_ms,
            cache_size_pages=settings.sqlite_cache_size_pages,
        )
        store.initialize()
        return store
    else:
        raise ValueError(f"Unsupported store backend: {settings.store_backend}")
