"""Pydantic models for the recorded execution tree."""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NO_MESSAGE = "(no message)"


class HttpRequest(BaseModel):
    """Request half of an interaction, as handed over by the fetch wrapper."""

    method: str
    url: str
    headers: Optional[dict[str, str]] = None
    body: Optional[str] = None


class HttpResponse(BaseModel):
    """Response half of an interaction."""

    model_config = ConfigDict(populate_by_name=True)

    status: int
    status_text: str = Field(alias="statusText")
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""


class AssertionRecord(BaseModel):
    """One expected-vs-actual check and its outcome. Never mutated."""

    model_config = ConfigDict(frozen=True)

    type: str
    expected: Any = None
    actual: Any = None
    passed: bool
    message: str = NO_MESSAGE
    line: int = -1


class StepRecord(BaseModel):
    """One HTTP interaction plus the assertions made right after it."""

    request: Optional[HttpRequest] = None
    response: Optional[HttpResponse] = None
    assertions: list[AssertionRecord] = Field(default_factory=list)
    duration: Optional[float] = None


class TestRecord(BaseModel):
    """Outcome of one ``it`` block."""

    __test__ = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    steps: list[StepRecord] = Field(default_factory=list)
    result: Literal["pass", "fail"] = "pass"
    error: Optional[BaseException] = None
    source_code: str = ""
    line_offset: int = -1
    duration: Optional[float] = None


class SuiteRecord(BaseModel):
    """One ``describe`` block with its tests and nested suites in declaration order."""

    name: str
    tests: list[Union[TestRecord, SuiteRecord]] = Field(default_factory=list)
    error: Optional[str] = None
    duration: Optional[float] = None

    def direct_tests(self) -> list[TestRecord]:
        return [child for child in self.tests if isinstance(child, TestRecord)]


SuiteRecord.model_rebuild()
