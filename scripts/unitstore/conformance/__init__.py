"""Backend-agnostic conformance suite for unit storage backends.

The suite is an ordered catalogue of scenarios (``SCENARIOS``) that every
backend must pass. It is parameterized only by two factories:

    create_storage: returns a fresh, not yet created backend on each call.
    load_from_config: rebuilds a backend from ``dump_config`` output, or None
        when the backend does not support it. The configuration scenario is
        then skipped, which does not fail the run.

Use ``run_storage_tests`` directly, or subclass
``unitstore.conformance.pytest_support.StorageConformanceTests`` to get one
pytest test per scenario.
"""

from __future__ import annotations

from unitstore.conformance.context import (
    FAILED,
    PASSED,
    SKIPPED,
    CaseResult,
    CreateFunc,
    LoadFromConfigFunc,
    Scenario,
    ScenarioContext,
    ScenarioSkipped,
)
from unitstore.conformance.runner import SuiteReport, run_scenario, run_storage_tests
from unitstore.conformance.scenarios import SCENARIOS, simple_units

__all__ = [
    "CaseResult",
    "CreateFunc",
    "LoadFromConfigFunc",
    "Scenario",
    "ScenarioContext",
    "ScenarioSkipped",
    "SuiteReport",
    "SCENARIOS",
    "FAILED",
    "PASSED",
    "SKIPPED",
    "run_scenario",
    "run_storage_tests",
    "simple_units",
]
