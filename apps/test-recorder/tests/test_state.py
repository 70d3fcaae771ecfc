from __future__ import annotations

from test_recorder.models import StepRecord, SuiteRecord, TestRecord
from test_recorder.state import (
    get_state,
    reset_state,
    set_current_describe,
    set_current_step,
    set_current_test,
)


def test_setters_are_visible_through_get_state() -> None:
    suite = SuiteRecord(name="suite")
    test = TestRecord(name="test")
    step = StepRecord()

    set_current_describe(suite)
    assert set_current_test(test) is test
    set_current_step(step)

    state = get_state()
    assert state.current_describe is suite
    assert state.current_test is test
    assert state.current_step is step


def test_reset_starts_a_fresh_report_without_touching_old_lists() -> None:
    state = get_state()
    state.test_results.append(SuiteRecord(name="previous run"))
    previous = state.test_results
    set_current_test(TestRecord(name="dangling"))

    reset_state()

    assert get_state().test_results == []
    assert get_state().current_test is None
    assert [suite.name for suite in previous] == ["previous run"]
