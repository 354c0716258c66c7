"""SQLite database storage backend.

This module provides a storage backend that persists units to a SQLite
database. It uses transactions and WAL mode for reliability.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from unitstore.codec import Record, load_unit_tree, unit_to_record
from unitstore.errors import StorageBackendError, StorageNotCreatedError, UnitNotFoundError
from unitstore.protocol import StorageConfig
from unitstore.units import TYPE_LIST, AnyUnit, validate_unit, validate_unit_id

# SQL schema for the SQLite database
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS units (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    payload TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS list_items (
    list_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    item_id TEXT NOT NULL,
    PRIMARY KEY (list_id, position),
    FOREIGN KEY (list_id) REFERENCES units(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_units_type ON units(type);
CREATE INDEX IF NOT EXISTS idx_list_items_item ON list_items(item_id);
"""

# WAL mode leaves these next to the database file
SIDE_FILE_SUFFIXES = ("-wal", "-shm", "-journal")

ENVELOPE_KEYS = ("id", "type", "title")


class SQLiteStorageBackend:
    """SQLite database storage backend for units.

    Unit envelopes live in the ``units`` table with the variant payload as
    JSON. List membership is normalized into ``list_items`` so the order of
    children is kept by position. The storage counts as created while the
    database file exists.

    Attributes:
        db_path: The Path to the SQLite database file.

    Example:
        backend = SQLiteStorageBackend(Path("/home/user/project/.unitstore/units.db"))
        backend.create()
        backend.save_unit(unit)
        loaded = backend.load_unit(unit["id"])
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the SQLite storage backend.

        Nothing is written until create() is called.

        Args:
            db_path: The path to the SQLite database file.
        """
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        """Create and configure a database connection.

        Enables WAL mode, sets IMMEDIATE isolation level for transaction
        control, and enables foreign key constraints.

        Returns:
            A configured sqlite3.Connection object.

        Raises:
            sqlite3.Error: If there's an error connecting to the database.
        """
        conn = sqlite3.connect(
            str(self.db_path),
            isolation_level="IMMEDIATE",
            check_same_thread=False,  # Safe: each operation uses fresh connection
        )
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _open(self, action: str) -> sqlite3.Connection:
        """Connect for one unit operation.

        Raises:
            StorageBackendError: If the database cannot be opened, for example
                because the file is not a SQLite database.
        """
        try:
            return self._connect()
        except sqlite3.Error as error:
            raise StorageBackendError(f"Cannot {action}: {error}") from error

    def _require_created(self) -> None:
        if not self.is_created():
            raise StorageNotCreatedError(f"Storage at {self.db_path} is not created")

    def create(self) -> None:
        """Create the database file with its tables and indexes.

        Raises:
            StorageBackendError: If the database cannot be initialized.
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                conn.executescript(SCHEMA_SQL)
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as error:
            raise StorageBackendError(f"Cannot create storage at {self.db_path}: {error}") from error

    def is_created(self) -> bool:
        return self.db_path.is_file()

    def remove(self) -> None:
        """Delete the database file and its WAL side files.

        Raises:
            StorageBackendError: If a file cannot be deleted.
        """
        paths = [self.db_path] + [
            self.db_path.with_name(self.db_path.name + suffix) for suffix in SIDE_FILE_SUFFIXES
        ]
        try:
            for path in paths:
                path.unlink(missing_ok=True)
        except OSError as error:
            raise StorageBackendError(f"Cannot remove storage at {self.db_path}: {error}") from error

    def save_unit(self, unit: AnyUnit | None) -> None:
        """Insert or replace a unit in a single transaction.

        For list units the previous membership rows are dropped and the
        current children are written in order.

        Raises:
            StorageNotCreatedError: If the database does not exist.
            InvalidUnitError: If unit is None or malformed.
            StorageBackendError: If the transaction fails.
        """
        self._require_created()
        record = unit_to_record(validate_unit(unit))
        payload = {key: value for key, value in record.items() if key not in ENVELOPE_KEYS}
        children: list[str] = []
        if record["type"] == TYPE_LIST:
            children = payload.pop("items")

        conn = self._open(f"save unit {record['id']!r}")
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO units (id, type, title, payload) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    type = excluded.type,
                    title = excluded.title,
                    payload = excluded.payload
                """,
                (record["id"], record["type"], record["title"], json.dumps(payload)),
            )
            cursor.execute("DELETE FROM list_items WHERE list_id = ?", (record["id"],))
            cursor.executemany(
                "INSERT INTO list_items (list_id, position, item_id) VALUES (?, ?, ?)",
                [(record["id"], position, child) for position, child in enumerate(children)],
            )
            conn.commit()
        except sqlite3.Error as error:
            try:
                conn.rollback()
            except sqlite3.Error:
                pass  # Connection may be in bad state after commit failure
            raise StorageBackendError(f"Cannot save unit {record['id']!r}: {error}") from error
        finally:
            conn.close()

    def load_unit(self, unit_id: str) -> AnyUnit:
        """Load a unit, resolving list children within one connection.

        Raises:
            StorageNotCreatedError: If the database does not exist.
            InvalidUnitError: If unit_id is empty.
            UnitNotFoundError: If unit_id is not stored.
            StorageBackendError: If the query fails or data is corrupt.
        """
        self._require_created()
        validate_unit_id(unit_id)

        conn = self._open(f"load unit {unit_id!r}")
        try:
            conn.row_factory = sqlite3.Row

            def fetch_record(current_id: str) -> Record | None:
                row = conn.execute(
                    "SELECT id, type, title, payload FROM units WHERE id = ?",
                    (current_id,),
                ).fetchone()
                if row is None:
                    return None

                try:
                    record = json.loads(row["payload"])
                except json.JSONDecodeError as error:
                    raise StorageBackendError(
                        f"Stored payload of unit {current_id!r} is corrupt: {error.msg}"
                    ) from error
                if not isinstance(record, dict):
                    raise StorageBackendError(
                        f"Stored payload of unit {current_id!r} is not a JSON object"
                    )
                record.update(id=row["id"], type=row["type"], title=row["title"])

                if row["type"] == TYPE_LIST:
                    cursor = conn.execute(
                        "SELECT item_id FROM list_items WHERE list_id = ? ORDER BY position",
                        (current_id,),
                    )
                    record["items"] = [item["item_id"] for item in cursor]
                return record

            return load_unit_tree(unit_id, fetch_record)
        except sqlite3.Error as error:
            raise StorageBackendError(f"Cannot load unit {unit_id!r}: {error}") from error
        finally:
            conn.close()

    def remove_unit(self, unit: AnyUnit | None) -> None:
        """Delete a unit; list membership rows go with it via cascade.

        Raises:
            StorageNotCreatedError: If the database does not exist.
            InvalidUnitError: If unit is None or malformed.
            UnitNotFoundError: If the unit is not stored.
            StorageBackendError: If the transaction fails.
        """
        self._require_created()
        target = validate_unit(unit)["id"]

        conn = self._open(f"remove unit {target!r}")
        try:
            cursor = conn.execute("DELETE FROM units WHERE id = ?", (target,))
            conn.commit()
            deleted = cursor.rowcount
        except sqlite3.Error as error:
            try:
                conn.rollback()
            except sqlite3.Error:
                pass  # Connection may be in bad state
            raise StorageBackendError(f"Cannot remove unit {target!r}: {error}") from error
        finally:
            conn.close()

        if deleted == 0:
            raise UnitNotFoundError(f"Unit not found: {target!r}")

    def to_config(self) -> StorageConfig:
        return {"type": "sqlite", "path": str(self.db_path)}
