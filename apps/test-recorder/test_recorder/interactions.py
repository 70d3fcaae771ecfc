"""Attach HTTP request/response pairs to the test in flight."""

from __future__ import annotations

from typing import Any, Optional, Union

import structlog

from .errors import InteractionOutsideTestError
from .models import HttpRequest, HttpResponse, StepRecord
from .state import get_state, set_current_step

LOGGER = structlog.get_logger("test_recorder")


def record_http_interaction(
    request: Union[HttpRequest, dict[str, Any]],
    response: Union[HttpResponse, dict[str, Any]],
    duration: Optional[float] = None,
) -> StepRecord:
    """Open a new step for one interaction and make it the current step.

    Later assertions in the same test attach to this step. ``duration`` is the
    elapsed time of the HTTP call in milliseconds when the caller measured it.
    """

    if not isinstance(request, HttpRequest):
        request = HttpRequest.model_validate(request)
    if not isinstance(response, HttpResponse):
        response = HttpResponse.model_validate(response)

    state = get_state()
    if state.current_test is None:
        raise InteractionOutsideTestError(request.method, request.url)

    step = StepRecord(request=request, response=response, duration=duration)
    state.current_test.steps.append(step)
    set_current_step(step)
    LOGGER.debug(
        "interaction_recorded",
        test=state.current_test.name,
        method=request.method,
        url=request.url,
        status=response.status,
    )
    return step
