"""Shared fixtures and utilities for unit storage tests.

This module provides common test fixtures used across all storage backend tests,
including sample units, temporary directories, and parameterized backend instances.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from unitstore.json_backend import JSONStorageBackend
from unitstore.memory_backend import InMemoryStorageBackend
from unitstore.protocol import StorageBackend
from unitstore.sqlite_backend import SQLiteStorageBackend
from unitstore.units import (
    CodeUnit,
    ListUnit,
    TextUnit,
    TodoUnit,
    new_list,
    new_text_code,
    new_text_plain,
    new_todo,
    new_todo_item,
    new_unit,
)


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory for testing.

    Returns:
        Path to a clean temporary directory.
    """
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def sample_text() -> TextUnit:
    """Create a plain text unit titled MyUnit."""
    return new_text_plain("MyUnit", "MyData")


@pytest.fixture
def sample_code() -> CodeUnit:
    """Create a code unit with a language tag."""
    return new_text_code("MyUnit", "print('hi')", "python")


@pytest.fixture
def sample_todo() -> TodoUnit:
    """Create a todo unit with one finished and one open item.

    Returns:
        A TodoUnit whose items are in a fixed order.
    """
    return new_todo(
        "MyUnit",
        [new_todo_item("Data1", done=True), new_todo_item("Data2", done=False)],
    )


@pytest.fixture
def sample_list(sample_text: TextUnit, sample_code: CodeUnit, sample_todo: TodoUnit) -> ListUnit:
    """Create a list unit over the other sample units plus a plain unit.

    Args:
        sample_text: Fixture providing a text unit.
        sample_code: Fixture providing a code unit.
        sample_todo: Fixture providing a todo unit.

    Returns:
        A ListUnit whose children still need to be saved separately.
    """
    return new_list("MyList", [sample_text, new_unit("Plain"), sample_code, sample_todo])


@pytest.fixture(params=["memory", "json", "sqlite"])
def storage_backend(request, tmp_project: Path) -> StorageBackend:
    """Parameterized fixture providing every storage backend type, created.

    This fixture enables cross-backend testing by running the same tests
    against all implementations.

    Args:
        request: Pytest request object with param.
        tmp_project: Temporary project directory.

    Returns:
        A created backend instance.
    """
    if request.param == "memory":
        backend: StorageBackend = InMemoryStorageBackend()
    elif request.param == "json":
        backend = JSONStorageBackend(tmp_project / "units")
    else:
        backend = SQLiteStorageBackend(tmp_project / "units.db")
    backend.create()
    return backend


@pytest.fixture
def json_backend(tmp_project: Path) -> JSONStorageBackend:
    """Create a JSON storage backend for JSON-specific tests.

    The backend is not created yet.

    Args:
        tmp_project: Temporary project directory.

    Returns:
        An instance of JSONStorageBackend.
    """
    return JSONStorageBackend(tmp_project / "units")


@pytest.fixture
def sqlite_backend(tmp_project: Path) -> SQLiteStorageBackend:
    """Create a SQLite storage backend for SQLite-specific tests.

    The backend is not created yet.

    Args:
        tmp_project: Temporary project directory.

    Returns:
        An instance of SQLiteStorageBackend.
    """
    return SQLiteStorageBackend(tmp_project / "units.db")
