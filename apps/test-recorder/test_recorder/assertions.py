"""Recording assertion primitives used by conformance tests.

Every primitive runs the real check from ``checks``, appends an
``AssertionRecord`` to the current step and, on failure, re-raises a
``ConformanceAssertionError`` so the owning test is marked failed. Tests are
expected to perform their HTTP call before asserting; with no current step the
call fails with ``AssertionOutsideTestError`` and nothing is recorded.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from . import checks
from .errors import AssertionOutsideTestError, ConformanceAssertionError
from .models import NO_MESSAGE, AssertionRecord, StepRecord
from .source import caller_line
from .state import get_state


def _require_step(kind: str) -> StepRecord:
    state = get_state()
    if state.current_test is None or state.current_step is None:
        raise AssertionOutsideTestError(kind)
    return state.current_step


def _append(
    step: StepRecord,
    kind: str,
    expected: Any,
    actual: Any,
    passed: bool,
    message: Optional[str],
) -> None:
    step.assertions.append(
        AssertionRecord(
            type=kind,
            expected=expected,
            actual=actual,
            passed=passed,
            message=message or NO_MESSAGE,
            line=caller_line(),
        )
    )


def record_assertion(
    kind: str,
    expected: Any,
    actual: Any,
    check: Optional[Callable[[], Any]],
    message: Optional[str] = None,
) -> Any:
    """Run ``check`` and record its outcome on the current step."""

    step = _require_step(kind)
    failure: Optional[Exception] = None
    result = None
    if check is not None:
        try:
            result = check()
        except Exception as exc:
            failure = exc
    _append(step, kind, expected, actual, failure is None, message)
    if failure is not None:
        raise ConformanceAssertionError(str(failure)) from failure
    return result


def assert_true(expr: Any, msg: Optional[str] = None) -> None:
    record_assertion("assert_true", True, expr, lambda: checks.check_true(expr, msg), msg)


def assert_false(actual: Any, msg: Optional[str] = None) -> None:
    record_assertion("assert_false", False, actual, lambda: checks.check_false(actual, msg), msg)


def assert_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    record_assertion(
        "assert_equals",
        expected,
        actual,
        lambda: checks.check_equals(actual, expected, msg),
        msg,
    )


def assert_not_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    record_assertion(
        "assert_not_equals",
        expected,
        actual,
        lambda: checks.check_not_equals(actual, expected, msg),
        msg,
    )


def assert_strict_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    record_assertion(
        "assert_strict_equals",
        expected,
        actual,
        lambda: checks.check_strict_equals(actual, expected, msg),
        msg,
    )


def assert_exists(actual: Any, msg: Optional[str] = None) -> None:
    record_assertion(
        "assert_exists", "not None", actual, lambda: checks.check_exists(actual, msg), msg
    )


def assert_not_exists(actual: Any, msg: Optional[str] = None) -> None:
    record_assertion(
        "assert_not_exists", None, actual, lambda: checks.check_not_exists(actual, msg), msg
    )


def assert_throws(
    fn: Callable[[], Any],
    error_class: type[BaseException] = Exception,
    msg_includes: Optional[str] = None,
    msg: Optional[str] = None,
) -> BaseException:
    """Assert that ``fn`` raises ``error_class`` and return the raised error."""

    kind = "assert_throws"
    step = _require_step(kind)
    expected = {"error_class": error_class.__name__, "msg_includes": msg_includes}
    try:
        error = checks.check_throws(fn, error_class, msg_includes, msg)
    except AssertionError as exc:
        _append(step, kind, expected, {"thrown_error": exc.__cause__}, False, msg)
        raise ConformanceAssertionError(str(exc)) from exc
    _append(step, kind, expected, {"thrown_error": error}, True, msg)
    return error
