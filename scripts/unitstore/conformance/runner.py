"""Suite runner: executes the scenario catalogue against one backend.

Example:
    from unitstore import JSONStorageBackend, load_from_config
    from unitstore.conformance import run_storage_tests

    report = run_storage_tests(lambda: JSONStorageBackend(root), load_from_config)
    print(report.render())
    assert report.passed
"""

from __future__ import annotations

import os
import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from unitstore.conformance.context import (
    FAILED,
    OUTCOME_LABELS,
    PASSED,
    SKIPPED,
    CaseResult,
    CreateFunc,
    LoadFromConfigFunc,
    Scenario,
    ScenarioContext,
    ScenarioSkipped,
    record_failure,
    record_skip,
)
from unitstore.conformance.scenarios import SCENARIOS


@dataclass
class SuiteReport:
    """Results of one suite run, one node per scenario.

    Attributes:
        results: Scenario results in catalogue order.
    """

    results: list[CaseResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when no scenario failed. Skipped scenarios do not count as failures."""
        return not any(result.failed for result in self.results)

    @property
    def failures(self) -> list[CaseResult]:
        return [result for result in self.results if result.failed]

    def counts(self) -> dict[str, int]:
        """Count scenarios per outcome; every outcome key is present."""
        counter = Counter(result.outcome for result in self.results)
        return {outcome: counter.get(outcome, 0) for outcome in (PASSED, FAILED, SKIPPED)}

    def summary(self) -> str:
        counts = self.counts()
        return (
            f"{counts[PASSED]} passed, {counts[FAILED]} failed, "
            f"{counts[SKIPPED]} skipped"
        )

    def render(self) -> str:
        """Render every scenario tree followed by the summary line."""
        lines = [result.render() for result in self.results]
        lines.append(self.summary())
        return "\n".join(lines)


def _clean_up(result: CaseResult, create_storage: CreateFunc) -> None:
    """Remove whatever storage the scenario left behind.

    File backed factories hand out instances on one location, so the next
    scenario must start from storage that is not created.
    """
    try:
        create_storage().remove()
    except Exception as error:
        if not result.failed:
            result.outcome = FAILED
            result.message = f"cleanup failed: {error!r}"


def run_scenario(
    scenario: Scenario,
    create_storage: CreateFunc,
    load_from_config: Optional[LoadFromConfigFunc] = None,
) -> CaseResult:
    """Run a single scenario and capture its outcome.

    Assertion failures and unexpected exceptions are both recorded as
    failures, never raised. Afterwards the storage is removed through a new
    instance so the next scenario starts from nothing.

    Args:
        scenario: Catalogue entry to run.
        create_storage: Returns a fresh, not yet created backend on each call.
        load_from_config: Rebuilds a backend from a config blob, or None when
            the backend does not support it.

    Returns:
        The result tree of the scenario.
    """
    result = CaseResult(scenario.title)
    try:
        scenario.body(ScenarioContext(result), create_storage, load_from_config)
    except ScenarioSkipped as reason:
        record_skip(result, reason)
    except Exception as error:
        record_failure(result, error)
    _clean_up(result, create_storage)

    if os.environ.get("DEBUG"):
        print(f"{OUTCOME_LABELS[result.outcome]} {scenario.title}", file=sys.stderr)
    return result


def run_storage_tests(
    create_storage: CreateFunc,
    load_from_config: Optional[LoadFromConfigFunc] = None,
    scenarios: Iterable[Scenario] | None = None,
) -> SuiteReport:
    """Run the full conformance suite against one backend.

    Args:
        create_storage: Returns a fresh, not yet created backend on each call.
        load_from_config: Rebuilds a backend from a config blob, or None to
            skip the configuration round-trip scenario.
        scenarios: Scenarios to run instead of the full catalogue.

    Returns:
        A SuiteReport with one result per scenario.
    """
    selected = SCENARIOS if scenarios is None else scenarios
    report = SuiteReport()
    for scenario in selected:
        report.results.append(run_scenario(scenario, create_storage, load_from_config))
    return report
