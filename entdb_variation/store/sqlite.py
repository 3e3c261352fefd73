"""
SQLite record store for entdb-variation.

This module stores records of every type in one SQLite file:
- records: one row per record, attributes as a JSON payload
- sequences: last generated auto-increment key per record type

Filtering happens in Python with the same loose key matching as the
in-memory backend, so both backends agree on which variations match
which options.

Invariants:
    - One row per (record_type, normalized primary key)
    - All writes are atomic (single transaction)
    - Row order is insertion order (rowid), preserved across updates

How to change safely:
    - Schema changes must be backward compatible with existing files
    - Use transactions for all write operations

Table schema:
    records:
        - record_type TEXT
        - pk_json TEXT (JSON list of normalized key values)
        - payload_json TEXT
        - created_at INTEGER (Unix ms)
        - updated_at INTEGER (Unix ms)
        - PRIMARY KEY (record_type, pk_json)

    sequences:
        - record_type TEXT PRIMARY KEY
        - last_id INTEGER
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..errors import RecordNotFoundError, StorageError
from .base import explicit_integer_key, needs_generated_key, storage_key

if TYPE_CHECKING:
    from ..query import Query
    from ..record import Record

logger = logging.getLogger(__name__)


class SqliteRecordStore:
    """SQLite-backed implementation of RecordStore.

    Thread safety:
        Each operation opens its own connection.
        SQLite handles concurrent access via WAL mode.

    Example:
        >>> store = SqliteRecordStore("/var/lib/entdb/variation.db")
        >>> store.initialize()
        >>> Language(store, name="English").save()
        True
    """

    # SQLite schema version for migrations
    SCHEMA_VERSION = 1

    def __init__(
        self,
        path: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
        cache_size_pages: int = -64000,
    ) -> None:
        """Initialize the record store.

        Args:
            path: SQLite database file
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
            cache_size_pages: SQLite cache size (negative = KB)
        """
        self.path = Path(path)
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self.cache_size_pages = cache_size_pages

    @contextmanager
    def _get_connection(self, create: bool = False) -> Iterator[sqlite3.Connection]:
        """Get a database connection.

        Args:
            create: Whether to create the database file if missing

        Yields:
            SQLite connection

        Raises:
            StorageError: If database doesn't exist and create=False
        """
        if not create and not self.path.exists():
            raise StorageError(f"Record database not initialized: {self.path}")

        self.path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(self.path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit by default, explicit transactions
        )
        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            conn.execute(f"PRAGMA cache_size = {self.cache_size_pages}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            yield conn
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS records (
                record_type TEXT NOT NULL,
                pk_json TEXT NOT NULL,
                payload_json TEXT NOT NULL DEFAULT '{}',
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (record_type, pk_json)
            );

            CREATE TABLE IF NOT EXISTS sequences (
                record_type TEXT PRIMARY KEY,
                last_id INTEGER NOT NULL
            );

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    def initialize(self) -> None:
        """Create the database file and schema if they don't exist."""
        with self._get_connection(create=True) as conn:
            self._create_schema(conn)
        logger.info("Initialized record database", extra={"path": str(self.path)})

    def find_all(self, query: Query) -> list[Record]:
        """Fetch matching records in insertion order."""
        record_class = query.record_class
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT payload_json FROM records WHERE record_type = ? ORDER BY rowid",
                (record_class.record_type.name,),
            )
            rows = [json.loads(row["payload_json"]) for row in cursor.fetchall()]
        return [record_class.instantiate(self, row) for row in rows if query.matches(row)]

    def insert(self, record: Record) -> None:
        """Store a new record, assigning a generated key if needed."""
        type_name = record.record_type.name
        now = int(time.time() * 1000)

        key_name = record.record_type.primary_key[0]
        generated = False

        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                if needs_generated_key(record):
                    next_id = self._last_id(conn, type_name) + 1
                    self._set_last_id(conn, type_name, next_id)
                    record.set_attribute(key_name, next_id)
                    generated = True
                else:
                    explicit = explicit_integer_key(record)
                    if explicit is not None and explicit > self._last_id(conn, type_name):
                        self._set_last_id(conn, type_name, explicit)

                conn.execute(
                    """
                    INSERT INTO records (record_type, pk_json, payload_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        type_name,
                        self._key_json(record, record.get_primary_key()),
                        self._payload_json(record),
                        now,
                        now,
                    ),
                )

                conn.execute("COMMIT")

            except sqlite3.IntegrityError as e:
                conn.execute("ROLLBACK")
                key = record.get_primary_key()
                if generated:
                    record.set_attribute(key_name, None)
                raise StorageError(
                    f"{type_name} record with key {key!r} already exists",
                    type_name=type_name,
                ) from e
            except Exception:
                conn.execute("ROLLBACK")
                if generated:
                    record.set_attribute(key_name, None)
                raise

        logger.debug(
            "Inserted record",
            extra={"record_type": type_name, "key": record.get_primary_key()},
        )

    def update(self, record: Record) -> bool:
        """Overwrite the stored row, following primary key changes."""
        type_name = record.record_type.name
        now = int(time.time() * 1000)

        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = conn.execute(
                    """
                    UPDATE records SET pk_json = ?, payload_json = ?, updated_at = ?
                    WHERE record_type = ? AND pk_json = ?
                    """,
                    (
                        self._key_json(record, record.get_primary_key()),
                        self._payload_json(record),
                        now,
                        type_name,
                        self._key_json(record, record.old_primary_key),
                    ),
                )
                if cursor.rowcount == 0:
                    conn.execute("ROLLBACK")
                    raise RecordNotFoundError(
                        f"{type_name} record {record.old_primary_key!r} not found",
                        type_name=type_name,
                        primary_key=record.old_primary_key,
                    )

                conn.execute("COMMIT")

            except RecordNotFoundError:
                raise
            except sqlite3.IntegrityError as e:
                conn.execute("ROLLBACK")
                raise StorageError(
                    f"{type_name} record with key {record.get_primary_key()!r} already exists",
                    type_name=type_name,
                ) from e
            except Exception:
                conn.execute("ROLLBACK")
                raise

        return True

    def delete(self, record: Record) -> bool:
        """Remove the stored row."""
        type_name = record.record_type.name

        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = conn.execute(
                    "DELETE FROM records WHERE record_type = ? AND pk_json = ?",
                    (type_name, self._key_json(record, record.old_primary_key)),
                )
                deleted = cursor.rowcount > 0
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

        if deleted:
            logger.debug(
                "Deleted record",
                extra={"record_type": type_name, "key": record.old_primary_key},
            )
        return deleted

    def count(self, record_class: type[Record]) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) AS total FROM records WHERE record_type = ?",
                (record_class.record_type.name,),
            )
            return cursor.fetchone()["total"]

    def _last_id(self, conn: sqlite3.Connection, type_name: str) -> int:
        cursor = conn.execute(
            "SELECT last_id FROM sequences WHERE record_type = ?",
            (type_name,),
        )
        row = cursor.fetchone()
        return row["last_id"] if row else 0

    def _set_last_id(self, conn: sqlite3.Connection, type_name: str, last_id: int) -> None:
        conn.execute(
            """
            INSERT INTO sequences (record_type, last_id) VALUES (?, ?)
            ON CONFLICT(record_type) DO UPDATE SET last_id = excluded.last_id
            """,
            (type_name, last_id),
        )

    @staticmethod
    def _key_json(record: Record, value: Any) -> str:
        return json.dumps(list(storage_key(record, value)))

    @staticmethod
    def _payload_json(record: Record) -> str:
        try:
            return json.dumps(record.attributes)
        except (TypeError, ValueError) as e:
            raise StorageError(
                f"{record.record_type.name} attributes are not JSON serializable: {e}",
                type_name=record.record_type.name,
            ) from e
