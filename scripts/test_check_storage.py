"""
Test suite for check_storage.py conformance checker.

Tests cover:
- Backend selection from UNIT_STORAGE_BACKEND
- Factories for each built-in backend
- Per-backend checks in scratch directories
- Main function exit codes and output
"""
from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from check_storage import (
    ALL_BACKENDS,
    BACKENDS,
    backend_factories,
    check_backend,
    main,
    selected_backends,
)
from unitstore import (
    InMemoryStorageBackend,
    JSONStorageBackend,
    SQLiteStorageBackend,
    StorageConfigError,
    load_from_config,
)
from unitstore.conformance import CaseResult, SuiteReport
from unitstore.conformance.scenarios import SCENARIOS


# =============================================================================
# TestSelectedBackends
# =============================================================================


class TestSelectedBackends:
    """Tests for selected_backends() function."""

    def test_defaults_to_all(self) -> None:
        """Unset UNIT_STORAGE_BACKEND checks every backend."""
        with patch.dict(os.environ, {}, clear=True):
            assert selected_backends() == ["memory", "json", "sqlite"]

    def test_explicit_all(self) -> None:
        """'all' checks every backend."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": ALL_BACKENDS}):
            assert selected_backends() == list(BACKENDS)

    def test_single_backend(self) -> None:
        """A backend name selects only that backend."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "sqlite"}):
            assert selected_backends() == ["sqlite"]

    def test_name_is_normalized(self) -> None:
        """Whitespace and case are ignored."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": " JSON\t"}):
            assert selected_backends() == ["json"]

    def test_unknown_backend_raises(self) -> None:
        """Unknown names raise StorageConfigError listing the choices."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "redis"}):
            with pytest.raises(StorageConfigError, match="memory, json, sqlite or 'all'"):
                selected_backends()


# =============================================================================
# TestBackendFactories
# =============================================================================


class TestBackendFactories:
    """Tests for backend_factories() function."""

    def test_memory_has_no_config_loader(self, tmp_path: Path) -> None:
        """Memory storage cannot be rebuilt, so no loader is given."""
        create_storage, loader = backend_factories("memory", tmp_path)
        assert isinstance(create_storage(), InMemoryStorageBackend)
        assert loader is None

    def test_json_instances_share_directory(self, tmp_path: Path) -> None:
        """Every JSON instance points at one directory under workdir."""
        with patch.dict(os.environ, {}, clear=True):
            create_storage, loader = backend_factories("json", tmp_path)
            first, second = create_storage(), create_storage()

        assert isinstance(first, JSONStorageBackend)
        assert first is not second
        assert first.root == second.root == tmp_path / ".unitstore" / "units"
        assert loader is load_from_config

    def test_sqlite_instances_share_database(self, tmp_path: Path) -> None:
        """Every SQLite instance points at one database under workdir."""
        with patch.dict(os.environ, {}, clear=True):
            create_storage, loader = backend_factories("sqlite", tmp_path)
            backend = create_storage()

        assert isinstance(backend, SQLiteStorageBackend)
        assert backend.db_path == tmp_path / ".unitstore" / "units.db"
        assert loader is load_from_config

    def test_custom_path_is_relative_to_workdir(self, tmp_path: Path) -> None:
        """UNIT_SQLITE_PATH is resolved inside the scratch directory."""
        with patch.dict(os.environ, {"UNIT_SQLITE_PATH": "db/check.db"}, clear=True):
            create_storage, _ = backend_factories("sqlite", tmp_path)
            backend = create_storage()

        assert backend.db_path == (tmp_path / "db" / "check.db").resolve()

    def test_escaping_path_raises(self, tmp_path: Path) -> None:
        """A path outside the scratch directory is a configuration error."""
        with patch.dict(os.environ, {"UNIT_STORAGE_PATH": "/etc/units"}, clear=True):
            with pytest.raises(StorageConfigError, match="escapes project directory"):
                backend_factories("json", tmp_path)


# =============================================================================
# TestCheckBackend
# =============================================================================


class TestCheckBackend:
    """Tests for check_backend() function."""

    @pytest.mark.parametrize("name", ["json", "sqlite"])
    def test_file_backends_pass_every_scenario(self, name: str) -> None:
        """File backends pass all scenarios, config included."""
        report = check_backend(name)

        assert report.passed, report.render()
        assert len(report.results) == len(SCENARIOS)
        assert report.counts()["skipped"] == 0

    def test_memory_backend_skips_config(self) -> None:
        """Memory backend passes with only the config scenario skipped."""
        report = check_backend("memory")

        assert report.passed, report.render()
        assert report.counts()["skipped"] == 1


# =============================================================================
# TestMain
# =============================================================================


class TestMain:
    """Tests for main() function entry point."""

    def test_all_backends_pass_exit_0(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Every backend passes, exit 0, one section per backend."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "all"}):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "== memory ==" in out
        assert "== json ==" in out
        assert "== sqlite ==" in out
        assert "SKIP Storage config can be JSON serialized/deserialized" in out
        assert "FAIL" not in out

    def test_single_backend_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Only the selected backend is checked."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "json"}):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "== json =="
        assert "  PASS plain-text" in lines
        assert lines[-1] == f"{len(SCENARIOS)} passed, 0 failed, 0 skipped"

    def test_failing_backend_exit_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Any failed scenario exits 1."""
        failing = SuiteReport([CaseResult("broken", "failed", "boom")])
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "memory"}):
            with patch("check_storage.check_backend", return_value=failing):
                with pytest.raises(SystemExit) as exc_info:
                    main()

        assert exc_info.value.code == 1
        assert "FAIL broken: boom" in capsys.readouterr().out

    def test_escaping_storage_path_exit_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        """A storage path outside the scratch directory exits 1 with a message."""
        env = {"UNIT_STORAGE_BACKEND": "json", "UNIT_STORAGE_PATH": "../../outside"}
        with patch.dict(os.environ, env):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "escapes project directory" in capsys.readouterr().err

    def test_unknown_backend_exit_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Invalid UNIT_STORAGE_BACKEND exits 1 with a message."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "redis"}):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "Error checking storage" in capsys.readouterr().err

    def test_unexpected_error_exit_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Unexpected errors exit 1 and print a traceback."""
        with patch.dict(os.environ, {"UNIT_STORAGE_BACKEND": "memory"}):
            with patch("check_storage.check_backend", side_effect=RuntimeError("boom")):
                with pytest.raises(SystemExit) as exc_info:
                    main()

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Unexpected error checking storage" in err
        assert "Traceback" in err


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
