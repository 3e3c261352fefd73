"""
Record store abstraction for entdb-variation.

This module provides a pluggable storage backend interface supporting:
- In-memory (for testing and local use)
- SQLite (single file, JSON payload rows)

The variation behaviors never talk to a backend directly; they go through
Record.save()/delete() and Query.all(), which delegate here.

Invariants:
    - Each write is atomic; nothing spans calls
    - Both backends match keys with the same loose comparison
    - Records returned by a store are bound to that store

How to change safely:
    - New backends must implement RecordStore protocol
    - Run the integration suite against every backend
"""

from .base import RecordStore, create_record_store
from .memory import InMemoryRecordStore
from .sqlite import SqliteRecordStore

__all__ = [
    # Protocol
    "RecordStore",
    # Factory
    "create_record_store",
    # Implementations
    "InMemoryRecordStore",
    "SqliteRecordStore",
]
