"""Render the recorded suite tree as plain data."""

from __future__ import annotations

import json
from typing import Any, Optional

from .models import AssertionRecord, StepRecord, SuiteRecord, TestRecord
from .state import get_state


def get_test_results() -> list[SuiteRecord]:
    """Top-level suites in declaration order, as recorded (live objects)."""

    return get_state().test_results


def serialize_results(results: Optional[list[SuiteRecord]] = None) -> list[dict[str, Any]]:
    suites = get_test_results() if results is None else results
    return [_serialize_suite(suite) for suite in suites]


def dump_results(results: Optional[list[SuiteRecord]] = None, indent: int = 4) -> str:
    """JSON text of the report. Values json cannot encode fall back to ``str``."""

    return json.dumps(serialize_results(results), indent=indent, default=str, ensure_ascii=False)


def _serialize_suite(suite: SuiteRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": suite.name,
        "tests": [
            _serialize_suite(child) if isinstance(child, SuiteRecord) else _serialize_test(child)
            for child in suite.tests
        ],
    }
    if suite.error is not None:
        payload["error"] = suite.error
    if suite.duration is not None:
        payload["duration"] = suite.duration
    return payload


def _serialize_test(test: TestRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": test.name,
        "steps": [_serialize_step(step) for step in test.steps],
        "result": test.result,
        "sourceCode": test.source_code,
        "lineOffset": test.line_offset,
    }
    if test.error is not None:
        payload["error"] = {"name": type(test.error).__name__, "message": str(test.error)}
    if test.duration is not None:
        payload["duration"] = test.duration
    return payload


def _serialize_step(step: StepRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if step.request is not None:
        payload["request"] = step.request.model_dump(exclude_none=True)
    if step.response is not None:
        payload["response"] = step.response.model_dump(by_alias=True)
    payload["assertions"] = [_serialize_assertion(assertion) for assertion in step.assertions]
    if step.duration is not None:
        payload["duration"] = step.duration
    return payload


def _serialize_assertion(assertion: AssertionRecord) -> dict[str, Any]:
    return {
        "type": assertion.type,
        "expected": assertion.expected,
        "actual": assertion.actual,
        "passed": assertion.passed,
        "message": assertion.message,
        "line": assertion.line,
    }
