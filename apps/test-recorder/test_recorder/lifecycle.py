"""Recording ``describe``/``it`` wrappers around the host runner.

``describe`` builds a ``SuiteRecord`` when its body runs, nests it under the
suite that was current when ``describe`` was called, and keeps the previous
current suite in a local so it can be restored on every exit path. ``it``
builds a ``TestRecord`` when the host runs it, marks it failed when the body
raises and re-raises so the host sees the failure too.

Both accept a callback directly or work as decorators::

    @describe("3.2.0.10 capabilities")
    def _capabilities() -> None:
        @it("Capabilities - Full mode")
        async def _full_mode() -> None:
            ...
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

import structlog

from .errors import HostRegistrationError
from .host import Body, get_runner, settle
from .models import SuiteRecord, TestRecord
from .source import extract_source_code
from .state import get_state, set_current_describe, set_current_step, set_current_test

LOGGER = structlog.get_logger("test_recorder")

F = TypeVar("F", bound=Body)


def describe(name: str, fn: Optional[F] = None) -> Callable[[F], F] | F:
    def register(body: F) -> F:
        parent = get_state().current_describe

        async def run_suite() -> None:
            suite = SuiteRecord(name=name)
            state = get_state()
            if parent is None:
                state.test_results.append(suite)
            else:
                parent.tests.append(suite)
            previous = state.current_describe
            set_current_describe(suite)
            LOGGER.debug("suite_entered", suite=name)
            start = time.perf_counter()
            try:
                await settle(body())
            except Exception as exc:
                suite.error = f"{type(exc).__name__}: {exc}"
                LOGGER.warning("suite_errored", suite=name, error=suite.error)
            finally:
                # Overwritten by the direct-test sum once one of its tests finishes.
                suite.duration = (time.perf_counter() - start) * 1000
                set_current_describe(previous)
                LOGGER.debug("suite_exited", suite=name)

        get_runner().describe(name, run_suite)
        return body

    if fn is None:
        return register
    return register(fn)


def it(name: str, fn: Optional[F] = None) -> Callable[[F], F] | F:
    snippet = extract_source_code()

    def register(body: F) -> F:
        suite = get_state().current_describe
        if suite is None:
            raise HostRegistrationError(f"Test '{name}' must be registered inside a describe block")

        async def run_test() -> None:
            test = set_current_test(
                TestRecord(
                    name=name,
                    source_code=snippet.source_code,
                    line_offset=snippet.line_offset,
                )
            )
            suite.tests.append(test)
            set_current_step(None)
            start = time.perf_counter()
            try:
                await settle(body())
                test.result = "pass"
            except Exception as exc:
                test.result = "fail"
                test.error = exc
                raise
            finally:
                set_test_duration(suite, test, (time.perf_counter() - start) * 1000)
                set_current_test(None)
                set_current_step(None)

        get_runner().it(name, run_test)
        return body

    if fn is None:
        return register
    return register(fn)


def main_describe(name: str, fn: Body) -> Body:
    """Register an umbrella suite that runs its body but is not recorded."""

    get_runner().describe(name, fn)
    return fn


def set_test_duration(suite: SuiteRecord, test: TestRecord, duration: float) -> None:
    """Store the test duration and refresh the suite total.

    The suite total is the sum of its direct tests only; nested suites do not
    contribute.
    """

    test.duration = duration
    suite.duration = sum(child.duration or 0.0 for child in suite.direct_tests())
