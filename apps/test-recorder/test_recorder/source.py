"""Locate the source text of a test at registration time.

The snippet is a readability aid for the report. Nothing here may break test
registration: every failure degrades to a placeholder and ``line_offset = -1``.
"""

from __future__ import annotations

import re
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog

TEST_FILE_SUFFIX = "_conformance.py"
NO_CALLER_FRAME = "no caller line index found"
UNREADABLE_SOURCE = "Unable to read the source file of the test"

_CALL_PATTERN = re.compile(r"(?<![\w.])it\(")
_DEF_PREFIXES = ("def ", "async def ")

LOGGER = structlog.get_logger("test_recorder")


@dataclass(frozen=True)
class SourceSnippet:
    source_code: str
    line_offset: int


def find_caller_frame(suffix: str = TEST_FILE_SUFFIX) -> Optional[traceback.FrameSummary]:
    """Return the innermost stack frame that belongs to a test file."""

    for frame in reversed(traceback.extract_stack()):
        if frame.filename.endswith(suffix):
            return frame
    return None


def caller_line(suffix: str = TEST_FILE_SUFFIX) -> int:
    frame = find_caller_frame(suffix)
    if frame is None or not frame.lineno:
        return -1
    return frame.lineno


def extract_source_code(suffix: str = TEST_FILE_SUFFIX) -> SourceSnippet:
    frame = find_caller_frame(suffix)
    if frame is None or not frame.lineno:
        LOGGER.debug("source_caller_not_found", suffix=suffix)
        return SourceSnippet(NO_CALLER_FRAME, -1)

    try:
        lines = Path(frame.filename).read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.debug("source_unreadable", file=frame.filename, error=str(exc))
        return SourceSnippet(UNREADABLE_SOURCE, -1)

    start = frame.lineno - 1
    if start >= len(lines):
        return SourceSnippet(UNREADABLE_SOURCE, -1)
    end = _call_end(lines, start)
    return SourceSnippet("\n".join(lines[start : end + 1]), frame.lineno)


def _call_end(lines: list[str], start: int) -> int:
    """Index of the last line of the ``it(...)`` call starting at or after ``start``.

    Parentheses are counted from the first line holding the call until they
    balance. When the call is a decorator, the decorated function is included.
    """

    call_line: Optional[int] = None
    depth = 0
    end = start
    for index in range(start, len(lines)):
        text = lines[index]
        if call_line is None:
            match = _CALL_PATTERN.search(text)
            if match is None:
                continue
            call_line = index
            text = text[match.start() :]
        depth += text.count("(") - text.count(")")
        end = index
        if depth <= 0:
            break

    if call_line is None:
        return start
    if lines[call_line].lstrip().startswith("@"):
        return _decorated_end(lines, end, _indent(lines[call_line]))
    return end


def _decorated_end(lines: list[str], decorator_end: int, base_indent: int) -> int:
    index = decorator_end + 1
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped and not stripped.startswith("@"):
            break
        index += 1
    if index >= len(lines) or not lines[index].lstrip().startswith(_DEF_PREFIXES):
        return decorator_end

    end = index
    for position in range(index + 1, len(lines)):
        text = lines[position]
        if not text.strip():
            continue
        if _indent(text) <= base_indent:
            break
        end = position
    return end


def _indent(text: str) -> int:
    return len(text) - len(text.lstrip())
