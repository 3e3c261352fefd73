"""
In-memory record store implementation.

This module provides a simple in-memory record backend for:
- Unit tests
- Integration tests
- Local development without a database file

Invariants:
    - All data is lost on process exit
    - Provides the same ordering and key semantics as the SQLite backend
    - Thread-safe for concurrent access

How to change safely:
    - Keep interface compatible with RecordStore protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from ..errors import RecordNotFoundError, StorageError
from .base import explicit_integer_key, needs_generated_key, storage_key

if TYPE_CHECKING:
    from ..query import Query
    from ..record import Record

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """In-memory implementation of RecordStore for testing.

    Rows are kept per record type in insertion order, as plain attribute
    dictionaries. Records handed out are fresh instances bound to this store.

    Example:
        >>> store = InMemoryRecordStore()
        >>> Language(store, name="English").save()
        True
        >>> store.count(Language)
        1
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._tables: dict[str, dict[tuple[Any, ...], dict[str, Any]]] = defaultdict(dict)
        self._sequences: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def find_all(self, query: Query) -> list[Record]:
        """Fetch matching records in insertion order."""
        record_class = query.record_class
        with self._lock:
            rows = list(self._tables.get(record_class.record_type.name, {}).values())
        return [
            record_class.instantiate(self, dict(row)) for row in rows if query.matches(row)
        ]

    def insert(self, record: Record) -> None:
        """Store a new record, assigning a generated key if needed."""
        type_name = record.record_type.name
        with self._lock:
            table = self._tables[type_name]
            generated = needs_generated_key(record)
            if generated:
                next_id = self._sequences[type_name] + 1
                key = (next_id,)
            else:
                next_id = explicit_integer_key(record)
                key = storage_key(record, record.get_primary_key())

            if key in table:
                raise StorageError(
                    f"{type_name} record with key {key!r} already exists",
                    type_name=type_name,
                )

            # Record and sequence change only once the key is free
            if next_id is not None:
                self._sequences[type_name] = max(self._sequences[type_name], next_id)
            if generated:
                record.set_attribute(record.record_type.primary_key[0], next_id)
            table[key] = record.attributes

        logger.debug("Inserted record", extra={"record_type": type_name, "key": key})

    def update(self, record: Record) -> bool:
        """Overwrite the stored row, following primary key changes."""
        type_name = record.record_type.name
        with self._lock:
            table = self._tables[type_name]
            old_key = storage_key(record, record.old_primary_key)
            if old_key not in table:
                raise RecordNotFoundError(
                    f"{type_name} record {record.old_primary_key!r} not found",
                    type_name=type_name,
                    primary_key=record.old_primary_key,
                )

            new_key = storage_key(record, record.get_primary_key())
            if new_key != old_key:
                if new_key in table:
                    raise StorageError(
                        f"{type_name} record with key {record.get_primary_key()!r} already exists",
                        type_name=type_name,
                    )
                del table[old_key]
            table[new_key] = record.attributes
        return True

    def delete(self, record: Record) -> bool:
        """Remove the stored row."""
        type_name = record.record_type.name
        with self._lock:
            table = self._tables.get(type_name, {})
            deleted = table.pop(storage_key(record, record.old_primary_key), None) is not None

        if deleted:
            logger.debug(
                "Deleted record",
                extra={"record_type": type_name, "key": record.old_primary_key},
            )
        return deleted

    def count(self, record_class: type[Record]) -> int:
        with self._lock:
            return len(self._tables.get(record_class.record_type.name, {}))

    # Testing helpers

    def rows(self, record_class: type[Record]) -> list[dict[str, Any]]:
        """Copies of the stored rows of a type (for assertions)."""
        with self._lock:
            return [dict(row) for row in self._tables.get(record_class.record_type.name, {}).values()]

    def clear(self) -> None:
        """Drop all stored data."""
        with self._lock:
            self._tables.clear()
            self._sequences.clear()
