"""HTTP access to the server under test.

Every request made through ``fetch_wrapper`` is recorded as a step of the
running test, including requests that never got a response.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urljoin

import httpx
import structlog

from test_recorder.interactions import record_http_interaction

from .config import get_config
from .oauth import get_access_token

LOGGER = structlog.get_logger("fhir_conformance.fetch")

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
ERROR_STATUS = -1
ERROR_STATUS_TEXT = "Error"

_CLIENT: Optional[httpx.AsyncClient] = None


@dataclass
class FetchResponse:
    success: bool
    status: int
    headers: httpx.Headers
    raw_body: str
    json_body: Any = None
    json_parsed: bool = False
    error: Optional[BaseException] = None


def set_http_client(client: Optional[httpx.AsyncClient]) -> None:
    global _CLIENT
    _CLIENT = client


def get_http_client() -> httpx.AsyncClient:
    global _CLIENT
    if _CLIENT is None:
        _CLIENT = httpx.AsyncClient(timeout=get_config().request_timeout)
    return _CLIENT


async def close_http_client() -> None:
    global _CLIENT
    if _CLIENT is not None:
        await _CLIENT.aclose()
        _CLIENT = None


def resolve_url(relative_url: str, base_url: str) -> str:
    base = base_url if base_url.endswith("/") else base_url + "/"
    return urljoin(base, relative_url)


def _parse_json(raw_body: str) -> tuple[Any, bool]:
    if not raw_body:
        return None, False
    try:
        return json.loads(raw_body), True
    except ValueError:
        return None, False


async def fetch_wrapper(
    relative_url: str,
    *,
    method: str = "GET",
    authorized: bool = False,
    headers: Optional[dict[str, str]] = None,
    body: Optional[str] = None,
    override_base_url: Optional[str] = None,
) -> FetchResponse:
    """Send one request to the FHIR server and record it on the current test."""

    config = get_config()
    url = resolve_url(relative_url, override_base_url or config.fhir_server_url)

    request_headers = httpx.Headers(headers or {})
    if "Content-Type" not in request_headers:
        request_headers["Content-Type"] = JSON_CONTENT_TYPE
    if authorized:
        token = await get_access_token(config, client=get_http_client())
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

    recorded_request = {
        "method": method,
        "url": url,
        "headers": dict(request_headers.items()),
        "body": body,
    }

    start = time.perf_counter()
    try:
        response = await get_http_client().request(
            method, url, headers=request_headers, content=body
        )
    except httpx.HTTPError as exc:
        duration = (time.perf_counter() - start) * 1000
        LOGGER.warning("request_failed", method=method, url=url, error=str(exc))
        record_http_interaction(
            recorded_request,
            {"status": ERROR_STATUS, "statusText": ERROR_STATUS_TEXT, "headers": {}, "body": str(exc)},
            duration=duration,
        )
        return FetchResponse(
            success=False,
            status=ERROR_STATUS,
            headers=httpx.Headers(),
            raw_body=str(exc),
            error=exc,
        )

    duration = (time.perf_counter() - start) * 1000
    raw_body = response.text
    json_body, json_parsed = _parse_json(raw_body)
    LOGGER.debug(
        "request_completed",
        method=method,
        url=url,
        status=response.status_code,
        duration_ms=round(duration, 3),
    )
    record_http_interaction(
        recorded_request,
        {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "headers": dict(response.headers.items()),
            "body": raw_body,
        },
        duration=duration,
    )
    return FetchResponse(
        success=response.is_success,
        status=response.status_code,
        headers=response.headers,
        raw_body=raw_body,
        json_body=json_body,
        json_parsed=json_parsed,
    )


async def fetch_search_wrapper(
    relative_url: str,
    *,
    authorized: bool = False,
    headers: Optional[dict[str, str]] = None,
    override_base_url: Optional[str] = None,
) -> FetchResponse:
    """Search with GET, retrying as ``POST [type]/_search`` when GET is not allowed."""

    response = await fetch_wrapper(
        relative_url,
        authorized=authorized,
        headers=headers,
        override_base_url=override_base_url,
    )
    if response.status != 405:
        return response

    path, _, query = relative_url.partition("?")
    LOGGER.info("search_get_not_allowed", path=path)
    return await fetch_wrapper(
        f"{path.rstrip('/')}/_search",
        method="POST",
        authorized=authorized,
        headers={**(headers or {}), "Content-Type": FORM_CONTENT_TYPE},
        body=query,
        override_base_url=override_base_url,
    )
