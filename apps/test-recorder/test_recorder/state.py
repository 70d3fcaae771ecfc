"""Process-wide recorder state.

The host runs suites and tests strictly one after another, so a single set of
"current" pointers is enough to attribute interactions and assertions. Every
setter is visible to the rest of the recorder immediately; nothing is copied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .models import StepRecord, SuiteRecord, TestRecord


@dataclass
class RecorderState:
    test_results: list[SuiteRecord] = field(default_factory=list)
    current_describe: Optional[SuiteRecord] = None
    current_test: Optional[TestRecord] = None
    current_step: Optional[StepRecord] = None


_STATE = RecorderState()


def get_state() -> RecorderState:
    """Return the live state; callers mutate it in place."""

    return _STATE


def set_current_describe(suite: Optional[SuiteRecord]) -> None:
    _STATE.current_describe = suite


def set_current_test(test: Optional[TestRecord]) -> Optional[TestRecord]:
    _STATE.current_test = test
    return _STATE.current_test


def set_current_step(step: Optional[StepRecord]) -> None:
    _STATE.current_step = step


def reset_state() -> RecorderState:
    """Start a fresh report. Lists handed out earlier are left untouched."""

    _STATE.test_results = []
    _STATE.current_describe = None
    _STATE.current_test = None
    _STATE.current_step = None
    return _STATE
