"""Plain assertion primitives.

These perform the actual comparison and raise ``AssertionError``. They do not
record anything; ``test_recorder.assertions`` wraps them for that.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

_STRICT_SCALARS = (str, bytes, int, float, bool, complex, type(None))


def _failure(default: str, msg: Optional[str]) -> AssertionError:
    return AssertionError(f"{default}: {msg}" if msg else default)


def check_true(expr: Any, msg: Optional[str] = None) -> None:
    if not expr:
        raise _failure(f"Expected a truthy value, got {expr!r}", msg)


def check_false(actual: Any, msg: Optional[str] = None) -> None:
    if actual:
        raise _failure(f"Expected a falsy value, got {actual!r}", msg)


def check_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    if actual != expected:
        raise _failure(f"Values are not equal: actual={actual!r} expected={expected!r}", msg)


def check_not_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    if actual == expected:
        raise _failure(f"Expected actual {actual!r} not to be equal to {expected!r}", msg)


def check_strict_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    """Identity for objects; same type and value for scalars."""

    if actual is expected:
        return
    if (
        isinstance(expected, _STRICT_SCALARS)
        and type(actual) is type(expected)
        and actual == expected
    ):
        return
    raise _failure(f"Values are not strictly equal: actual={actual!r} expected={expected!r}", msg)


def check_exists(actual: Any, msg: Optional[str] = None) -> None:
    if actual is None:
        raise _failure("Expected a value, got None", msg)


def check_not_exists(actual: Any, msg: Optional[str] = None) -> None:
    if actual is not None:
        raise _failure(f"Expected None, got {actual!r}", msg)


def check_throws(
    fn: Callable[[], Any],
    error_class: type[BaseException] = Exception,
    msg_includes: Optional[str] = None,
    msg: Optional[str] = None,
) -> BaseException:
    """Call ``fn`` and return the exception it raised."""

    try:
        fn()
    except error_class as exc:
        if msg_includes and msg_includes not in str(exc):
            raise _failure(
                f"Expected error message to include {msg_includes!r}, got {str(exc)!r}", msg
            ) from exc
        return exc
    except Exception as exc:
        raise _failure(
            f"Expected {error_class.__name__} to be raised, got {type(exc).__name__}", msg
        ) from exc
    raise _failure(f"Expected {error_class.__name__} to be raised, but nothing was raised", msg)
