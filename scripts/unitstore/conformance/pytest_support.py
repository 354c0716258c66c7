"""Pytest integration for the conformance suite.

Subclass StorageConformanceTests in a test module and provide the
``create_storage`` fixture (and ``load_from_config`` when the backend can be
rebuilt from its configuration). Every scenario becomes its own pytest test::

    class TestMyBackendConformance(StorageConformanceTests):
        @pytest.fixture
        def create_storage(self, tmp_path):
            return lambda: MyBackend(tmp_path / "data")
"""

from __future__ import annotations

from typing import Optional

import pytest

from unitstore.conformance.context import CaseResult, CreateFunc, LoadFromConfigFunc, Scenario
from unitstore.conformance.runner import run_scenario
from unitstore.conformance.scenarios import SCENARIOS


def check_result(result: CaseResult) -> None:
    """Report a scenario result through pytest.

    Skipped scenarios call pytest.skip, failed ones pytest.fail with the
    rendered result tree so failing subtests are listed by name.
    """
    if result.skipped:
        pytest.skip(result.message or "skipped")
    if result.failed:
        pytest.fail(result.render(), pytrace=False)


def scenario_id(scenario: Scenario) -> str:
    return scenario.title


class StorageConformanceTests:
    """Runs every conformance scenario against one backend."""

    @pytest.fixture
    def create_storage(self) -> CreateFunc:
        raise NotImplementedError("Conformance tests must override the create_storage fixture")

    @pytest.fixture
    def load_from_config(self) -> Optional[LoadFromConfigFunc]:
        return None

    @pytest.mark.parametrize("scenario", SCENARIOS, ids=scenario_id)
    def test_scenario(
        self,
        scenario: Scenario,
        create_storage: CreateFunc,
        load_from_config: Optional[LoadFromConfigFunc],
    ) -> None:
        check_result(run_scenario(scenario, create_storage, load_from_config))
