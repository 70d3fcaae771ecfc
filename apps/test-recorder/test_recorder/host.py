"""Serial BDD host runner.

Provides the ``describe``/``it`` scheduling primitives the recorder wraps.
Suites are collected lazily: a suite's body is awaited first, which registers
its children, then its ``before_all`` hooks run, then its children run in
declaration order, then its ``after_all`` hooks. Test bodies never overlap.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Union

import structlog

from .errors import HostRegistrationError

LOGGER = structlog.get_logger("test_recorder.host")

Body = Callable[[], Any]


async def settle(result: Any) -> Any:
    """Await ``result`` when a sync-or-async callback returned an awaitable."""

    if inspect.isawaitable(result):
        return await result
    return result


@dataclass
class HostTest:
    name: str
    fn: Body
    path: tuple[str, ...]


@dataclass
class HostSuite:
    name: str
    fn: Optional[Body]
    path: tuple[str, ...]
    children: list[Union[HostTest, HostSuite]] = field(default_factory=list)
    before_all: list[Body] = field(default_factory=list)
    after_all: list[Body] = field(default_factory=list)


@dataclass
class HostOutcome:
    """Pass/fail of one test, or the failure of a suite body or hook."""

    kind: str
    name: str
    path: tuple[str, ...]
    passed: bool
    duration_ms: float
    error: Optional[BaseException] = None


@dataclass
class RunReport:
    outcomes: list[HostOutcome]
    duration_ms: float

    @property
    def tests(self) -> list[HostOutcome]:
        return [outcome for outcome in self.outcomes if outcome.kind == "test"]

    @property
    def passed(self) -> int:
        return sum(1 for outcome in self.tests if outcome.passed)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.passed)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class RunListener(Protocol):
    def on_suite_start(self, suite: HostSuite, depth: int) -> None: ...

    def on_test_finish(self, outcome: HostOutcome, depth: int) -> None: ...

    def on_run_finish(self, report: RunReport) -> None: ...


class HostRunner:
    """Collects suites and tests, then runs them one at a time."""

    def __init__(self) -> None:
        self._root = HostSuite(name="", fn=None, path=())
        self._collecting = self._root
        self._listeners: list[RunListener] = []
        self._test_running = False
        self._finished = False

    @property
    def root(self) -> HostSuite:
        return self._root

    def add_listener(self, listener: RunListener) -> None:
        self._listeners.append(listener)

    def describe(self, name: str, fn: Body) -> HostSuite:
        parent = self._registration_target("describe")
        suite = HostSuite(name=name, fn=fn, path=(*parent.path, name))
        parent.children.append(suite)
        return suite

    def it(self, name: str, fn: Body) -> HostTest:
        parent = self._registration_target("it")
        test = HostTest(name=name, fn=fn, path=parent.path)
        parent.children.append(test)
        return test

    def before_all(self, fn: Body) -> None:
        self._registration_target("before_all").before_all.append(fn)

    def after_all(self, fn: Body) -> None:
        self._registration_target("after_all").after_all.append(fn)

    async def run(self) -> RunReport:
        if self._finished:
            raise HostRegistrationError("This runner has already run; create a new one")
        start = time.perf_counter()
        outcomes: list[HostOutcome] = []
        try:
            await self._run_body(self._root, 0, outcomes)
        finally:
            self._finished = True
        report = RunReport(outcomes=outcomes, duration_ms=(time.perf_counter() - start) * 1000)
        LOGGER.info(
            "run_finished",
            tests=len(report.tests),
            passed=report.passed,
            failed=report.failed,
            duration_ms=round(report.duration_ms, 3),
        )
        for listener in self._listeners:
            listener.on_run_finish(report)
        return report

    def _registration_target(self, what: str) -> HostSuite:
        if self._finished:
            raise HostRegistrationError(f"Cannot register {what} after the run finished")
        if self._test_running:
            raise HostRegistrationError(f"Cannot register {what} inside a running test")
        return self._collecting

    async def _run_suite(self, suite: HostSuite, depth: int, outcomes: list[HostOutcome]) -> None:
        for listener in self._listeners:
            listener.on_suite_start(suite, depth)
        LOGGER.debug("suite_collecting", suite=suite.name, path="/".join(suite.path))

        previous = self._collecting
        self._collecting = suite
        start = time.perf_counter()
        try:
            await settle(suite.fn())
        except Exception as exc:
            outcomes.append(self._suite_failure(suite, "suite", start, exc))
            return
        finally:
            self._collecting = previous

        await self._run_body(suite, depth + 1, outcomes)

    async def _run_body(self, suite: HostSuite, depth: int, outcomes: list[HostOutcome]) -> None:
        for hook in suite.before_all:
            start = time.perf_counter()
            try:
                await settle(hook())
            except Exception as exc:
                outcomes.append(self._suite_failure(suite, "before_all", start, exc))
                return

        for child in list(suite.children):
            if isinstance(child, HostSuite):
                await self._run_suite(child, depth, outcomes)
            else:
                outcomes.append(await self._run_test(child, depth))

        for hook in suite.after_all:
            start = time.perf_counter()
            try:
                await settle(hook())
            except Exception as exc:
                outcomes.append(self._suite_failure(suite, "after_all", start, exc))

    async def _run_test(self, test: HostTest, depth: int) -> HostOutcome:
        self._test_running = True
        start = time.perf_counter()
        error: Optional[BaseException] = None
        try:
            await settle(test.fn())
        except Exception as exc:
            error = exc
        finally:
            self._test_running = False
        outcome = HostOutcome(
            kind="test",
            name=test.name,
            path=test.path,
            passed=error is None,
            duration_ms=(time.perf_counter() - start) * 1000,
            error=error,
        )
        if error is not None:
            LOGGER.info("test_failed", test=test.name, error=str(error))
        for listener in self._listeners:
            listener.on_test_finish(outcome, depth)
        return outcome

    @staticmethod
    def _suite_failure(
        suite: HostSuite, kind: str, start: float, exc: BaseException
    ) -> HostOutcome:
        LOGGER.warning("suite_failed", suite=suite.name, stage=kind, error=str(exc))
        return HostOutcome(
            kind=kind,
            name=suite.name,
            path=suite.path,
            passed=False,
            duration_ms=(time.perf_counter() - start) * 1000,
            error=exc,
        )


_DEFAULT_RUNNER = HostRunner()


def get_runner() -> HostRunner:
    return _DEFAULT_RUNNER


def reset_runner() -> HostRunner:
    """Replace the default runner, dropping every registration."""

    global _DEFAULT_RUNNER
    _DEFAULT_RUNNER = HostRunner()
    return _DEFAULT_RUNNER


def before_all(fn: Body) -> Body:
    get_runner().before_all(fn)
    return fn


def after_all(fn: Body) -> Body:
    get_runner().after_all(fn)
    return fn
