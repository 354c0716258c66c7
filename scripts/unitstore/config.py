"""Serialization of backend configuration.

A configuration blob is the JSON encoding of ``StorageBackend.to_config()``.
It describes where a backend keeps its data, never the data itself, so a
backend rebuilt from it sees every unit saved before the blob was taken.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from unitstore.errors import StorageConfigError
from unitstore.json_backend import JSONStorageBackend
from unitstore.protocol import StorageBackend
from unitstore.sqlite_backend import SQLiteStorageBackend


def dump_config(backend: StorageBackend) -> bytes:
    """Encode the configuration of backend as a JSON blob.

    Args:
        backend: Any storage backend.

    Returns:
        UTF-8 encoded JSON object.

    Raises:
        StorageConfigError: If the configuration is not JSON serializable.
    """
    try:
        return json.dumps(backend.to_config(), sort_keys=True).encode("utf-8")
    except (TypeError, ValueError) as error:
        raise StorageConfigError(f"Storage configuration is not serializable: {error}") from error


def _require_path(config: dict[str, Any]) -> Path:
    path = config.get("path")
    if not isinstance(path, str) or not path.strip():
        raise StorageConfigError(
            f"Storage configuration for {config['type']!r} requires a non-empty 'path'"
        )
    return Path(path)


def load_from_config(blob: bytes) -> StorageBackend:
    """Rebuild a backend from a configuration blob.

    Args:
        blob: Output of dump_config.

    Returns:
        A backend pointing at the same data as the one the blob came from.

    Raises:
        StorageConfigError: If the blob is not valid JSON, not an object, or
            names an unknown backend type or one that cannot be restored.
    """
    try:
        config = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise StorageConfigError(f"Storage configuration is not valid JSON: {error}") from error

    if not isinstance(config, dict):
        raise StorageConfigError("Storage configuration must be a JSON object")

    backend_type = config.get("type")
    if backend_type == "json":
        return JSONStorageBackend(_require_path(config))
    elif backend_type == "sqlite":
        return SQLiteStorageBackend(_require_path(config))
    elif backend_type == "memory":
        raise StorageConfigError("In-memory storage cannot be restored from configuration")
    else:
        raise StorageConfigError(
            f"Unknown storage backend: {backend_type!r}. Expected 'json' or 'sqlite'."
        )
