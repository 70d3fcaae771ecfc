"""Exceptions raised by the recorder and its host runner."""

from __future__ import annotations


class RecorderError(Exception):
    """Base exception for test recorder errors."""


class RecorderUsageError(RecorderError):
    """Recorder API used while no test is in flight.

    Signals a harness bug rather than a conformance failure, so it is kept
    apart from ``AssertionError``.
    """


class AssertionOutsideTestError(RecorderUsageError):
    """Assertion primitive called with no current test or step."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"Assertion '{kind}' made outside of a test or before its first HTTP interaction"
        )
        self.kind = kind


class InteractionOutsideTestError(RecorderUsageError):
    """HTTP interaction recorded with no current test."""

    def __init__(self, method: str, url: str) -> None:
        super().__init__(f"HTTP interaction {method} {url} recorded outside of a test")
        self.method = method
        self.url = url


class HostRegistrationError(RecorderError):
    """Suite, test or hook registered at a point the host cannot accept it."""


class ConformanceAssertionError(AssertionError):
    """Normalized failure re-raised by every intercepted assertion."""
