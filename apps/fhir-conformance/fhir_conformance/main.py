"""CLI entrypoint for the FHIR conformance runner."""

from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path
from typing import Callable, Optional

import click
import typer
from typer.core import TyperCommand

from test_recorder.host import HostRunner, RunReport, reset_runner
from test_recorder.lifecycle import main_describe
from test_recorder.report import dump_results
from test_recorder.state import reset_state

from .config import ConfigError, ConformanceConfig, load_config, set_config
from .console_reporter import ConsoleReporter
from .fetch import close_http_client
from .logging_utils import configure_logging
from .output_config import get_log_format, get_output_format
from .suites.restful.suite import restful_suite
from .suites.search.suite import search_suite

DEFAULT_STORE_FILE = "test-results.json"
STORE_FLAGS = ("--store", "-s")

SUITES: dict[str, tuple[str, Callable[[ConformanceConfig], None]]] = {
    "search": ("FHIR Search Tests", search_suite),
    "restful": ("FHIR Restful Tests", restful_suite),
}
SUITE_GROUPS = {
    "search": ["search"],
    "restful": ["restful"],
    "all": ["search", "restful"],
}


def expand_store_flag(args: list[str]) -> list[str]:
    """Give a bare ``--store``/``-s`` the default file name."""

    expanded: list[str] = []
    for index, arg in enumerate(args):
        expanded.append(arg)
        if arg in STORE_FLAGS:
            following = args[index + 1] if index + 1 < len(args) else None
            if following is None or following.startswith("-"):
                expanded.append(DEFAULT_STORE_FILE)
    return expanded


class ConformanceCommand(TyperCommand):
    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        return super().parse_args(ctx, expand_store_flag(list(args)))


app = typer.Typer(
    help="Run FHIR server conformance suites and record every HTTP interaction.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


async def _execute(runner: HostRunner) -> RunReport:
    try:
        return await runner.run()
    finally:
        await close_http_client()


def _store_results(store: Optional[str]) -> None:
    if store is None:
        typer.echo("Test results were not stored. Use --store option to save results.")
        return
    target = Path(store)
    target.write_text(dump_results(), encoding="utf-8")
    typer.echo(f"Test results have been stored in {target}")


@app.command(cls=ConformanceCommand)
def main(
    store: Optional[str] = typer.Option(
        None,
        "--store",
        "-s",
        help=f"Store test results with HTTP interactions in a JSON file (default: {DEFAULT_STORE_FILE}).",
    ),
    suite: str = typer.Option(
        "restful",
        "--suite",
        "-t",
        help="Test suite to run: 'restful', 'search' or 'all'.",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="YAML or JSON settings file (falls back to FHIR_CONFORMANCE_CONFIG).",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="FHIR server base URL; overrides the settings file and FHIR_SERVER_URL.",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output-format",
        help="Console output format: auto, rich, plain or json (falls back to CONSOLE_OUTPUT_FORMAT).",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for structured logs."),
) -> None:
    """Run the selected conformance suites against a FHIR server."""

    selected = SUITE_GROUPS.get(suite.lower())
    if selected is None:
        typer.secho(
            f"Invalid suite specified: {suite}. Please use 'search', 'restful' or 'all'.",
            err=True,
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)

    logger = configure_logging(log_level, get_log_format(output_format))
    try:
        config = load_config(config_path, base_url)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    set_config(config)

    reset_state()
    runner = reset_runner()
    runner.add_listener(ConsoleReporter(output_format=get_output_format(output_format)))
    for key in selected:
        title, register = SUITES[key]
        main_describe(title, partial(register, config))

    logger.info("run_started", suites=selected, base_url=config.fhir_server_url)
    report = asyncio.run(_execute(runner))
    _store_results(store)
    raise typer.Exit(code=0 if report.ok else 1)


def run() -> None:
    """Console_scripts hook."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
