from __future__ import annotations

import json
from io import StringIO

import pytest
from rich.console import Console

from fhir_conformance.console_reporter import ConsoleReporter
from fhir_conformance.output_config import OutputFormat
from test_recorder.host import HostOutcome, HostSuite, RunReport


def sample_run() -> tuple[HostSuite, list[HostOutcome], RunReport]:
    suite = HostSuite(name="3.2.0.2 read", fn=None, path=("3.2.0.2 read",))
    outcomes = [
        HostOutcome(kind="test", name="Read - existing", path=suite.path, passed=True, duration_ms=12.0),
        HostOutcome(
            kind="test",
            name="Read - deleted",
            path=suite.path,
            passed=False,
            duration_ms=8.0,
            error=AssertionError("Should return 410 Gone"),
        ),
    ]
    return suite, outcomes, RunReport(outcomes=outcomes, duration_ms=25.0)


def replay(reporter: ConsoleReporter) -> None:
    suite, outcomes, report = sample_run()
    reporter.on_suite_start(suite, 0)
    for outcome in outcomes:
        reporter.on_test_finish(outcome, 1)
    reporter.on_run_finish(report)


def test_plain_output_lists_tests_and_summary(capsys: pytest.CaptureFixture[str]) -> None:
    replay(ConsoleReporter(output_format=OutputFormat.PLAIN))

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "3.2.0.2 read"
    assert lines[1] == "  ✓ PASS Read - existing (12ms)"
    assert lines[2] == "  ✗ FAIL Read - deleted (8ms)"
    assert lines[3] == "      Error: Should return 410 Gone"
    assert "Total: 2 | Passed: 1 | Failed: 1 | Duration: 25ms" in lines
    assert lines[-1] == "✗ SOME TESTS FAILED"


def test_json_output_emits_one_event_per_line(capsys: pytest.CaptureFixture[str]) -> None:
    replay(ConsoleReporter(output_format=OutputFormat.JSON))

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [event["event"] for event in events] == ["suite", "test", "test", "summary"]
    assert events[2]["error"] == "Should return 410 Gone"
    assert events[3]["failed"] == 1


def test_rich_output_renders_summary_panel() -> None:
    buffer = StringIO()
    reporter = ConsoleReporter(
        output_format=OutputFormat.RICH,
        console=Console(file=buffer, force_terminal=False, width=120),
    )

    replay(reporter)

    text = buffer.getvalue()
    assert "Read - existing" in text
    assert "Error: Should return 410 Gone" in text
    assert "SOME TESTS FAILED" in text
    assert "Passed: 1" in text


def test_suite_errors_are_listed_in_summary(capsys: pytest.CaptureFixture[str]) -> None:
    failure = HostOutcome(
        kind="before_all",
        name="FHIR Restful Tests",
        path=("FHIR Restful Tests",),
        passed=False,
        duration_ms=1.0,
        error=RuntimeError("token endpoint down"),
    )
    ConsoleReporter(output_format=OutputFormat.PLAIN).on_run_finish(
        RunReport(outcomes=[failure], duration_ms=1.0)
    )

    out = capsys.readouterr().out
    assert "before_all 'FHIR Restful Tests': token endpoint down" in out
    assert "SOME TESTS FAILED" in out


def test_auto_mode_is_plain_in_ci(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CI", "true")

    assert ConsoleReporter(output_format=OutputFormat.AUTO).use_rich is False
