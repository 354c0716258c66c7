"""Result tree and assertion facility shared by all conformance scenarios.

A scenario body receives a ScenarioContext. Every assertion raises
AssertionError on failure, which ends the scenario (or the current subtest)
and is recorded in its CaseResult. Subtests record their own node, so one
failing unit type does not hide the others.
"""

from __future__ import annotations

import os
import sys
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Literal, NamedTuple, NoReturn, Optional

from unitstore.protocol import StorageBackend
from unitstore.units import AnyUnit, units_equal

CreateFunc = Callable[[], StorageBackend]
LoadFromConfigFunc = Callable[[bytes], StorageBackend]

Outcome = Literal["passed", "failed", "skipped"]

PASSED: Outcome = "passed"
FAILED: Outcome = "failed"
SKIPPED: Outcome = "skipped"

OUTCOME_LABELS: dict[str, str] = {PASSED: "PASS", FAILED: "FAIL", SKIPPED: "SKIP"}


class ScenarioSkipped(Exception):
    """Raised by ScenarioContext.skip to end a scenario as skipped."""


@dataclass
class CaseResult:
    """Outcome of one scenario or subtest.

    Attributes:
        title: Scenario title or subtest name.
        outcome: "passed", "failed" or "skipped".
        message: Failure or skip reason, empty when passed.
        children: Results of nested subtests, in execution order.
    """

    title: str
    outcome: Outcome = PASSED
    message: str = ""
    children: list[CaseResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.outcome == FAILED

    @property
    def skipped(self) -> bool:
        return self.outcome == SKIPPED

    def iter_lines(self, depth: int = 0) -> Iterator[str]:
        line = f"{'  ' * depth}{OUTCOME_LABELS[self.outcome]} {self.title}"
        if self.message:
            line += f": {self.message}"
        yield line
        for child in self.children:
            yield from child.iter_lines(depth + 1)

    def render(self) -> str:
        """Render this node and its subtests as indented text lines."""
        return "\n".join(self.iter_lines())


def record_failure(result: CaseResult, error: BaseException) -> None:
    """Mark result as failed because error escaped its body."""
    result.outcome = FAILED
    if isinstance(error, AssertionError):
        result.message = str(error)
    else:
        result.message = f"unexpected error: {error!r}"
    if os.environ.get("DEBUG"):
        traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)


def record_skip(result: CaseResult, reason: ScenarioSkipped) -> None:
    """Mark result as skipped unless a subtest already failed it."""
    if not result.failed:
        result.outcome = SKIPPED
        result.message = str(reason)


def _describe(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)


class ScenarioContext:
    """Assertions and subtests for one scenario body.

    Attributes:
        result: The node this context reports into.
    """

    def __init__(self, result: CaseResult) -> None:
        self.result = result

    def fail(self, message: str) -> NoReturn:
        raise AssertionError(message)

    def skip(self, reason: str) -> NoReturn:
        raise ScenarioSkipped(reason)

    def no_error(self, func: Callable[..., Any], *args: Any) -> Any:
        """Call func and return its result; any exception fails the scenario."""
        try:
            return func(*args)
        except Exception as error:
            raise AssertionError(
                f"{_describe(func)} raised {error!r}, expected no error"
            ) from error

    def error(self, func: Callable[..., Any], *args: Any) -> Exception:
        """Call func and return the exception it raises; returning fails the scenario.

        Any exception type is accepted. Backends are free to classify their
        errors, only the presence of an error is part of the contract.
        """
        try:
            value = func(*args)
        except Exception as error:
            return error
        self.fail(f"{_describe(func)} returned {value!r}, expected an error")

    def true(self, value: Any, message: str = "expected a true value") -> None:
        if not value:
            self.fail(message)

    def false(self, value: Any, message: str = "expected a false value") -> None:
        if value:
            self.fail(message)

    def is_none(self, value: Any, message: str = "expected None") -> None:
        if value is not None:
            self.fail(f"{message}, got {value!r}")

    def not_none(self, value: Any, message: str = "expected a value, got None") -> None:
        if value is None:
            self.fail(message)

    def units_equal(self, expected: AnyUnit | None, actual: AnyUnit | None) -> None:
        if not units_equal(expected, actual):
            self.fail(f"units differ: expected {expected!r}, got {actual!r}")

    @contextmanager
    def subtest(self, title: str) -> Iterator[ScenarioContext]:
        """Run the with-block as a nested, independently reported case.

        Failures and skips inside the block are recorded on the subtest and do
        not propagate. A failed subtest also marks this context failed.
        """
        child = CaseResult(title)
        self.result.children.append(child)
        try:
            yield ScenarioContext(child)
        except ScenarioSkipped as reason:
            record_skip(child, reason)
        except Exception as error:
            record_failure(child, error)

        if child.failed:
            self.result.outcome = FAILED
            if not self.result.message:
                self.result.message = "subtest failed"


ScenarioFunc = Callable[[ScenarioContext, CreateFunc, Optional[LoadFromConfigFunc]], None]


class Scenario(NamedTuple):
    """Catalogue entry: a title used as test name and the body to run."""

    title: str
    body: ScenarioFunc
