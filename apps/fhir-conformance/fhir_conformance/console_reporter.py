"""Console reporter with environment detection for conformance run output."""

from __future__ import annotations

import json
import os
import sys
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from test_recorder.host import HostOutcome, HostSuite, RunReport

from .output_config import OutputFormat


class ConsoleReporter:
    """
    Live run listener that adapts to the environment.

    - Interactive terminals get colored rich output and a summary panel.
    - CI/CD and piped output get plain text.
    - ``json`` emits one JSON object per event line.
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.AUTO, console: Optional[Console] = None):
        self.output_format = output_format
        self._detect_environment()
        self.console = console or (Console() if self.use_rich else None)

    def _detect_environment(self) -> None:
        """Detect if we should use rich output or plain text."""
        if self.output_format == OutputFormat.RICH:
            self.use_rich = True
        elif self.output_format in (OutputFormat.PLAIN, OutputFormat.JSON):
            self.use_rich = False
        else:  # AUTO
            is_terminal = sys.stdout.isatty()
            is_ci = any(
                name in os.environ
                for name in ("CI", "GITHUB_ACTIONS", "JENKINS_HOME", "GITLAB_CI", "TRAVIS")
            )
            self.use_rich = is_terminal and not is_ci

    def on_suite_start(self, suite: HostSuite, depth: int) -> None:
        if self.output_format == OutputFormat.JSON:
            self._emit({"event": "suite", "name": suite.name, "path": list(suite.path)})
        elif self.use_rich:
            style = "bold cyan" if depth == 0 else "cyan"
            self.console.print(Text(f"{'  ' * depth}{suite.name}", style=style))
        else:
            print(f"{'  ' * depth}{suite.name}")

    def on_test_finish(self, outcome: HostOutcome, depth: int) -> None:
        error_msg = str(outcome.error) if outcome.error is not None else None
        if self.output_format == OutputFormat.JSON:
            self._emit(
                {
                    "event": "test",
                    "name": outcome.name,
                    "path": list(outcome.path),
                    "passed": outcome.passed,
                    "duration_ms": round(outcome.duration_ms, 3),
                    "error": error_msg,
                }
            )
            return

        indent = "  " * depth
        if self.use_rich:
            line = Text(indent)
            line.append("✓ PASS" if outcome.passed else "✗ FAIL", style="green" if outcome.passed else "red")
            line.append(f" {outcome.name} ")
            line.append(f"({outcome.duration_ms:.0f}ms)", style="dim")
            self.console.print(line)
            if error_msg and not outcome.passed:
                self.console.print(Text(f"{indent}    Error: {error_msg}", style="red"))
        else:
            status = "✓ PASS" if outcome.passed else "✗ FAIL"
            print(f"{indent}{status} {outcome.name} ({outcome.duration_ms:.0f}ms)")
            if error_msg and not outcome.passed:
                print(f"{indent}    Error: {error_msg}")

    def on_run_finish(self, report: RunReport) -> None:
        """Display the final run summary."""
        total = len(report.tests)
        failed_tests = total - report.passed
        suite_errors = [outcome for outcome in report.outcomes if outcome.kind != "test"]

        if self.output_format == OutputFormat.JSON:
            self._emit(
                {
                    "event": "summary",
                    "total": total,
                    "passed": report.passed,
                    "failed": failed_tests,
                    "suite_errors": len(suite_errors),
                    "duration_ms": round(report.duration_ms, 3),
                }
            )
            return

        if self.use_rich:
            summary_text = Text()
            summary_text.append(f"Total: {total}  ", style="bold")
            summary_text.append(f"Passed: {report.passed}  ", style="bold green")
            summary_text.append(f"Failed: {failed_tests}  ", style="bold red" if failed_tests else "bold green")
            if suite_errors:
                summary_text.append(f"Suite errors: {len(suite_errors)}  ", style="bold red")
            summary_text.append(f"Duration: {report.duration_ms:.0f}ms", style="bold cyan")
            for outcome in suite_errors:
                summary_text.append(f"\n{outcome.kind} '{outcome.name}': {outcome.error}", style="red")

            status = "✓ ALL TESTS PASSED" if report.ok else "✗ SOME TESTS FAILED"
            self.console.print()
            self.console.print(
                Panel(
                    summary_text,
                    title=Text(status, style="bold green" if report.ok else "bold red"),
                    border_style="green" if report.ok else "red",
                )
            )
        else:
            print("-" * 80)
            print(
                f"Total: {total} | Passed: {report.passed} | Failed: {failed_tests} | "
                f"Duration: {report.duration_ms:.0f}ms"
            )
            for outcome in suite_errors:
                print(f"{outcome.kind} '{outcome.name}': {outcome.error}")
            print("✓ ALL TESTS PASSED" if report.ok else "✗ SOME TESTS FAILED")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        if self.use_rich:
            self.console.print(f"[bold red]Error:[/] {message}")
        else:
            print(f"Error: {message}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print an info message."""
        if self.use_rich:
            self.console.print(f"[cyan]{message}[/]")
        else:
            print(message)

    @staticmethod
    def _emit(payload: dict) -> None:
        print(json.dumps(payload, ensure_ascii=False))
