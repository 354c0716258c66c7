#!/usr/bin/env python3
"""
Storage conformance checker - runs the unit storage conformance suite.

Certifies one or all built-in storage backends against the shared behavioral
contract and prints a PASS/FAIL/SKIP line per scenario and subtest. Every
backend runs inside its own temporary directory, so nothing is written to the
current project.

Environment Variables:
    UNIT_STORAGE_BACKEND (optional): Backend to check ("memory", "json",
                                     "sqlite" or "all").
                                     Default: "all"
    UNIT_STORAGE_PATH (optional): JSON directory, relative to the scratch
                                  directory. Default: .unitstore/units
    UNIT_SQLITE_PATH (optional): SQLite file, relative to the scratch
                                 directory. Default: .unitstore/units.db
    DEBUG (optional): If set, echoes scenario outcomes and tracebacks of
                      failing scenarios to stderr.

Exit Codes:
    0: Every scenario passed or was skipped
    1: A scenario failed, or the configuration is invalid

Output Format (stdout):
    == json ==
    PASS Storage can be successfully created
    FAIL Storage can handle all supported simple unit types: subtest failed
      PASS unit
      FAIL code-text: units differ: ...
    SKIP Storage config can be JSON serialized/deserialized: ...
    14 passed, 1 failed, 1 skipped
"""
from __future__ import annotations

import os
import sys
import tempfile
import traceback
from pathlib import Path
from typing import Optional

from unitstore import StorageConfigError, get_storage_backend, load_from_config
from unitstore.conformance import CreateFunc, LoadFromConfigFunc, SuiteReport, run_storage_tests

# Version check
if sys.version_info < (3, 10):
    print("Error: Python 3.10+ required", file=sys.stderr)
    sys.exit(1)

ALL_BACKENDS: str = "all"
MEMORY_BACKEND: str = "memory"
BACKENDS: tuple[str, ...] = (MEMORY_BACKEND, "json", "sqlite")

BackendFactories = tuple[CreateFunc, Optional[LoadFromConfigFunc]]


def backend_factories(name: str, workdir: Path) -> BackendFactories:
    """Build the suite's factory pair for backend name rooted at workdir.

    Instances come from get_storage_backend, so UNIT_STORAGE_PATH and
    UNIT_SQLITE_PATH apply relative to workdir. In-memory storage has no
    config to reload, so its config scenario is skipped.

    Raises:
        StorageConfigError: If name or the path configuration is invalid.
    """
    get_storage_backend(workdir, name)  # Fail fast on bad configuration

    def create_storage():
        return get_storage_backend(workdir, name)

    loader = None if name == MEMORY_BACKEND else load_from_config
    return create_storage, loader


def selected_backends() -> list[str]:
    """Return the backend names chosen by UNIT_STORAGE_BACKEND.

    Raises:
        StorageConfigError: If the variable names an unknown backend.
    """
    choice = os.environ.get("UNIT_STORAGE_BACKEND", ALL_BACKENDS).strip().lower()
    if choice == ALL_BACKENDS:
        return list(BACKENDS)
    if choice not in BACKENDS:
        raise StorageConfigError(
            f"Unknown storage backend: {choice!r}. "
            f"Expected one of {', '.join(BACKENDS)} or {ALL_BACKENDS!r}."
        )
    return [choice]


def check_backend(name: str) -> SuiteReport:
    """Run the conformance suite for one backend in a scratch directory."""
    with tempfile.TemporaryDirectory(prefix=f"unitstore-{name}-") as tmp:
        create_storage, loader = backend_factories(name, Path(tmp))
        return run_storage_tests(create_storage, loader)


def main() -> None:
    """Main entry point for the conformance checker."""
    try:
        names = selected_backends()

        failed = False
        for name in names:
            report = check_backend(name)
            print(f"== {name} ==")
            print(report.render())
            failed = failed or not report.passed

        sys.exit(1 if failed else 0)

    except StorageConfigError as e:
        print(f"Error checking storage: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        # Unexpected errors - preserve stack trace for debugging
        print(f"Unexpected error checking storage: {e!r}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
