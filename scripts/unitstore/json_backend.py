"""JSON file-based storage backend.

This module provides a storage backend that keeps each unit in its own JSON
file inside a directory. It uses atomic writes (temp file + os.replace) to
ensure a unit file is never left half written.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path

from unitstore.codec import Record, load_unit_tree, unit_to_record
from unitstore.errors import (
    InvalidUnitError,
    StorageBackendError,
    StorageNotCreatedError,
    UnitNotFoundError,
)
from unitstore.protocol import StorageConfig
from unitstore.units import AnyUnit, validate_unit, validate_unit_id

UNIT_FILE_SUFFIX = ".json"


class JSONStorageBackend:
    """Directory of JSON files, one per unit.

    The storage counts as created while its directory exists. Removing the
    storage deletes the whole directory.

    Attributes:
        root: The Path to the storage directory.

    Example:
        backend = JSONStorageBackend(Path("/home/user/project/.unitstore/units"))
        backend.create()
        backend.save_unit(unit)
        loaded = backend.load_unit(unit["id"])
    """

    def __init__(self, root: Path) -> None:
        """Initialize the JSON storage backend.

        Args:
            root: The directory that holds the unit files.
        """
        self.root = root

    def create(self) -> None:
        """Create the storage directory, including missing parents.

        Raises:
            StorageBackendError: If the directory cannot be created.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StorageBackendError(f"Cannot create storage at {self.root}: {error}") from error

    def is_created(self) -> bool:
        return self.root.is_dir()

    def remove(self) -> None:
        """Delete the storage directory if it exists.

        Raises:
            StorageBackendError: If the directory cannot be deleted.
        """
        if not self.root.exists():
            return
        try:
            shutil.rmtree(self.root)
        except OSError as error:
            raise StorageBackendError(f"Cannot remove storage at {self.root}: {error}") from error

    def _require_created(self) -> None:
        if not self.is_created():
            raise StorageNotCreatedError(f"Storage at {self.root} is not created")

    def _unit_path(self, unit_id: str) -> Path:
        """Map a unit id to its file, refusing ids that are not plain file names."""
        validate_unit_id(unit_id)
        if "\x00" in unit_id or unit_id in (".", "..") or Path(unit_id).name != unit_id:
            raise InvalidUnitError(f"Unit id cannot be used as a file name: {unit_id!r}")
        return self.root / f"{unit_id}{UNIT_FILE_SUFFIX}"

    def _read_record(self, unit_id: str) -> Record | None:
        """Read the record for unit_id, or None if it has no file.

        Raises:
            StorageBackendError: If the file is unreadable or not a JSON object.
        """
        path = self._unit_path(unit_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except (json.JSONDecodeError, OSError) as error:
            raise StorageBackendError(f"Cannot read unit file {path}: {error}") from error

        if not isinstance(record, dict):
            raise StorageBackendError(f"Unit file {path} does not hold a JSON object")
        return record

    def save_unit(self, unit: AnyUnit | None) -> None:
        """Atomically write the unit file, replacing any previous version.

        Writes to a temporary file in the storage directory before moving it to
        the final location, so readers never see a partial file.

        Raises:
            StorageNotCreatedError: If the storage directory is missing.
            InvalidUnitError: If the unit is None, malformed, or its id is not
                a valid file name.
            StorageBackendError: If the file cannot be written.
        """
        self._require_created()
        record = unit_to_record(validate_unit(unit))
        path = self._unit_path(record["id"])

        try:
            temp_fd, temp_path = tempfile.mkstemp(dir=self.root, suffix=".tmp")
        except OSError as error:
            raise StorageBackendError(f"Cannot write unit file {path}: {error}") from error

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)  # Atomic on POSIX
        except (OSError, TypeError, ValueError) as error:
            # Clean up temp file on failure
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageBackendError(f"Cannot write unit file {path}: {error}") from error

    def load_unit(self, unit_id: str) -> AnyUnit:
        self._require_created()
        validate_unit_id(unit_id)
        return load_unit_tree(unit_id, self._read_record)

    def remove_unit(self, unit: AnyUnit | None) -> None:
        self._require_created()
        path = self._unit_path(validate_unit(unit)["id"])
        try:
            path.unlink()
        except FileNotFoundError as error:
            raise UnitNotFoundError(f"Unit not found: {unit['id']!r}") from error
        except OSError as error:
            raise StorageBackendError(f"Cannot delete unit file {path}: {error}") from error

    def to_config(self) -> StorageConfig:
        return {"type": "json", "path": str(self.root)}
