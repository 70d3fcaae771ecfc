"""Console and log output format selection shared by the CLI, reporter and logging."""

import os
from enum import Enum
from typing import Literal


class OutputFormat(str, Enum):
    """Output format options for the conformance runner."""
    AUTO = "auto"
    RICH = "rich"
    PLAIN = "plain"
    JSON = "json"


LogFormat = Literal["json", "console", "plain"]

ENV_VAR_NAME = "CONSOLE_OUTPUT_FORMAT"


def get_output_format(cli_override: str | None = None) -> OutputFormat:
    """
    Get the output format with priority: CLI parameter > Environment variable > Default (auto).

    Unknown values are ignored and the next source is consulted.
    """
    for candidate in (cli_override, os.environ.get(ENV_VAR_NAME)):
        if not candidate:
            continue
        try:
            return OutputFormat(candidate.lower())
        except ValueError:
            continue
    return OutputFormat.AUTO


def get_log_format(cli_override: str | None = None) -> LogFormat:
    """
    Map the selected output format to a structlog renderer name.

    - auto/rich -> console (with colors)
    - plain -> plain (no colors)
    - json -> json
    """
    output_format = get_output_format(cli_override)
    if output_format == OutputFormat.JSON:
        return "json"
    if output_format == OutputFormat.PLAIN:
        return "plain"
    return "console"
