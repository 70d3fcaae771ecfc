from __future__ import annotations

import pytest

from test_recorder.errors import HostRegistrationError
from test_recorder.host import HostOutcome, HostRunner, HostSuite, RunReport, after_all, before_all


class RecordingListener:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_suite_start(self, suite: HostSuite, depth: int) -> None:
        self.events.append(("suite", suite.name, depth))

    def on_test_finish(self, outcome: HostOutcome, depth: int) -> None:
        self.events.append(("test", outcome.name, outcome.passed, depth))

    def on_run_finish(self, report: RunReport) -> None:
        self.events.append(("done", report.passed, report.failed))


@pytest.mark.asyncio
async def test_children_run_in_declaration_order_after_body() -> None:
    runner = HostRunner()
    order: list[str] = []

    def outer() -> None:
        order.append("outer body")
        runner.it("a", lambda: order.append("a"))

        def inner() -> None:
            order.append("inner body")
            runner.it("b", lambda: order.append("b"))

        runner.describe("inner", inner)
        runner.it("c", lambda: order.append("c"))

    runner.describe("outer", outer)
    report = await runner.run()

    assert order == ["outer body", "a", "inner body", "b", "c"]
    assert [outcome.name for outcome in report.tests] == ["a", "b", "c"]
    assert report.tests[1].path == ("outer", "inner")
    assert report.ok


@pytest.mark.asyncio
async def test_hooks_wrap_suite_children(fresh_recorder: HostRunner) -> None:
    order: list[str] = []

    async def body() -> None:
        before_all(lambda: order.append("before"))
        after_all(lambda: order.append("after"))
        fresh_recorder.it("test", lambda: order.append("test"))

    fresh_recorder.describe("suite", body)
    await fresh_recorder.run()

    assert order == ["before", "test", "after"]


@pytest.mark.asyncio
async def test_failing_test_does_not_stop_the_run() -> None:
    runner = HostRunner()
    listener = RecordingListener()
    runner.add_listener(listener)

    def suite() -> None:
        runner.it("fails", lambda: 1 / 0)
        runner.it("passes", lambda: None)

    runner.describe("suite", suite)
    report = await runner.run()

    assert listener.events == [
        ("suite", "suite", 0),
        ("test", "fails", False, 1),
        ("test", "passes", True, 1),
        ("done", 1, 1),
    ]
    assert isinstance(report.tests[0].error, ZeroDivisionError)
    assert not report.ok


@pytest.mark.asyncio
async def test_suite_body_failure_skips_its_children() -> None:
    runner = HostRunner()
    ran: list[str] = []

    def broken() -> None:
        runner.it("never", lambda: ran.append("never"))
        raise RuntimeError("collect failed")

    runner.describe("broken", broken)
    runner.describe("sibling", lambda: runner.it("sibling test", lambda: ran.append("sibling")))
    report = await runner.run()

    assert ran == ["sibling"]
    [failure] = [outcome for outcome in report.outcomes if outcome.kind == "suite"]
    assert failure.name == "broken"
    assert report.failed == 1


@pytest.mark.asyncio
async def test_before_all_failure_skips_suite_and_runs_nothing_after() -> None:
    runner = HostRunner()
    ran: list[str] = []

    def suite() -> None:
        runner.before_all(lambda: {}["missing"])
        runner.after_all(lambda: ran.append("after"))
        runner.it("skipped", lambda: ran.append("skipped"))

    runner.describe("suite", suite)
    report = await runner.run()

    assert ran == []
    assert [outcome.kind for outcome in report.outcomes] == ["before_all"]


@pytest.mark.asyncio
async def test_after_all_failure_is_reported() -> None:
    runner = HostRunner()

    def suite() -> None:
        runner.after_all(lambda: 1 / 0)
        runner.it("passes", lambda: None)

    runner.describe("suite", suite)
    report = await runner.run()

    assert report.passed == 1
    assert [outcome.kind for outcome in report.outcomes] == ["test", "after_all"]
    assert not report.ok


@pytest.mark.asyncio
async def test_registration_inside_running_test_is_rejected() -> None:
    runner = HostRunner()

    def suite() -> None:
        runner.it("registers", lambda: runner.it("nested", lambda: None))

    runner.describe("suite", suite)
    report = await runner.run()

    [outcome] = report.tests
    assert isinstance(outcome.error, HostRegistrationError)


@pytest.mark.asyncio
async def test_runner_runs_only_once() -> None:
    runner = HostRunner()
    await runner.run()

    with pytest.raises(HostRegistrationError):
        await runner.run()
    with pytest.raises(HostRegistrationError):
        runner.describe("late", lambda: None)
