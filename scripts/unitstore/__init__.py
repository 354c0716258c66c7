"""Unit storage backends, factory and exports.

This module provides a factory function to get the appropriate storage backend
based on the UNIT_STORAGE_BACKEND environment variable.

Supported backends:
    - "json" (default): directory of JSON files, one per unit
    - "sqlite": SQLite database storage
    - "memory": in-process storage, gone when the instance is dropped

Environment Variables:
    UNIT_STORAGE_BACKEND: "json" (default), "sqlite" or "memory"
    UNIT_STORAGE_PATH: Custom directory for JSON backend (relative or absolute)
    UNIT_SQLITE_PATH: Custom path for SQLite backend (relative or absolute)

Example:
    from unitstore import get_storage_backend, new_text_plain
    from pathlib import Path

    backend = get_storage_backend(Path("/home/user/project"))
    backend.create()
    backend.save_unit(new_text_plain("Title", "Text"))
"""

from __future__ import annotations

import os
from pathlib import Path

from unitstore.config import dump_config, load_from_config
from unitstore.errors import (
    InvalidUnitError,
    StorageBackendError,
    StorageConfigError,
    StorageError,
    StorageNotCreatedError,
    UnitNotFoundError,
)
from unitstore.json_backend import JSONStorageBackend
from unitstore.memory_backend import InMemoryStorageBackend
from unitstore.protocol import StorageBackend, StorageConfig
from unitstore.sqlite_backend import SQLiteStorageBackend
from unitstore.units import (
    new_list,
    new_text_code,
    new_text_markdown,
    new_text_plain,
    new_todo,
    new_todo_item,
    new_unit,
    units_equal,
)

__all__ = [
    "StorageBackend",
    "StorageConfig",
    "InMemoryStorageBackend",
    "JSONStorageBackend",
    "SQLiteStorageBackend",
    "StorageError",
    "StorageNotCreatedError",
    "InvalidUnitError",
    "UnitNotFoundError",
    "StorageBackendError",
    "StorageConfigError",
    "dump_config",
    "load_from_config",
    "get_storage_backend",
    "new_unit",
    "new_text_plain",
    "new_text_markdown",
    "new_text_code",
    "new_todo",
    "new_todo_item",
    "new_list",
    "units_equal",
]


def _resolve_safe_path(base_dir: Path, user_path: str) -> Path | None:
    """Resolve user_path against base_dir.

    Returns:
        The absolute path, or None if user_path is blank, holds a NUL byte or
        points outside base_dir.
    """
    if not user_path.strip() or "\x00" in user_path:
        return None
    # An absolute user_path replaces base_dir in the join
    resolved = (base_dir / user_path).resolve()
    return resolved if resolved.is_relative_to(base_dir.resolve()) else None


def _get_path(project_dir: Path, env_var: str, default: Path) -> Path:
    """Get a storage path from the environment or fall back to default.

    Raises:
        StorageConfigError: If the custom path escapes project directory.
    """
    custom_path = os.environ.get(env_var, "").strip()
    if not custom_path:
        return default

    safe_path = _resolve_safe_path(project_dir, custom_path)
    if safe_path is None:
        raise StorageConfigError(f"{env_var} '{custom_path}' escapes project directory")
    return safe_path


def get_storage_backend(project_dir: Path, backend_type: str | None = None) -> StorageBackend:
    """Get a storage backend for units rooted at project_dir.

    The backend kind is backend_type when given, otherwise the
    UNIT_STORAGE_BACKEND environment variable, defaulting to JSON.

    Path configuration:
        - JSON backend: Uses UNIT_STORAGE_PATH or defaults to .unitstore/units
        - SQLite backend: Uses UNIT_SQLITE_PATH or defaults to .unitstore/units.db

    The returned backend is not created yet.

    Args:
        project_dir: The project root directory used for resolving paths.
        backend_type: "json", "sqlite" or "memory", overriding the environment.

    Returns:
        An instance of the configured StorageBackend.

    Raises:
        StorageConfigError: If the backend type or path configuration is invalid.
    """
    if backend_type is None:
        backend_type = os.environ.get("UNIT_STORAGE_BACKEND", "json")
    backend_type = backend_type.strip().lower()

    if backend_type == "json":
        root = _get_path(project_dir, "UNIT_STORAGE_PATH", project_dir / ".unitstore" / "units")
        return JSONStorageBackend(root)
    elif backend_type == "sqlite":
        db_path = _get_path(
            project_dir, "UNIT_SQLITE_PATH", project_dir / ".unitstore" / "units.db"
        )
        return SQLiteStorageBackend(db_path)
    elif backend_type == "memory":
        return InMemoryStorageBackend()
    else:
        raise StorageConfigError(
            f"Unknown storage backend: {backend_type!r}. "
            f"Expected 'json', 'sqlite' or 'memory'."
        )
