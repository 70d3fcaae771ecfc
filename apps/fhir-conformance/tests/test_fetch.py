from __future__ import annotations

import json

import httpx
import pytest

from fhir_conformance.fetch import (
    ERROR_STATUS,
    fetch_search_wrapper,
    fetch_wrapper,
    resolve_url,
    set_http_client,
)
from test_recorder.errors import InteractionOutsideTestError
from test_recorder.models import TestRecord
from test_recorder.state import set_current_test


@pytest.fixture
def recorded_test() -> TestRecord:
    return set_current_test(TestRecord(name="fetch"))


def install_transport(handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    set_http_client(httpx.AsyncClient(transport=httpx.MockTransport(recording_handler)))
    return seen


@pytest.mark.parametrize(
    ("base", "relative", "expected"),
    [
        ("http://fhir.test/r4", "metadata", "http://fhir.test/r4/metadata"),
        ("http://fhir.test/r4/", "Patient?family=x", "http://fhir.test/r4/Patient?family=x"),
    ],
)
def test_relative_urls_resolve_below_base(base: str, relative: str, expected: str) -> None:
    assert resolve_url(relative, base) == expected


@pytest.mark.asyncio
async def test_successful_request_is_parsed_and_recorded(fhir_config, recorded_test: TestRecord) -> None:
    seen = install_transport(
        lambda request: httpx.Response(
            200,
            json={"resourceType": "CapabilityStatement"},
            headers={"ETag": 'W/"1"'},
        )
    )

    response = await fetch_wrapper("metadata", authorized=True)

    assert response.success is True
    assert response.status == 200
    assert response.json_parsed is True
    assert response.json_body == {"resourceType": "CapabilityStatement"}
    assert response.headers.get("ETag") == 'W/"1"'

    [request] = seen
    assert str(request.url) == "http://fhir.test/r4/metadata"
    assert request.headers["Authorization"] == "Bearer token-123"
    assert request.headers["Content-Type"] == "application/json"

    [step] = recorded_test.steps
    assert step.request.method == "GET"
    assert step.request.url == "http://fhir.test/r4/metadata"
    assert step.request.headers["authorization"] == "Bearer token-123"
    assert step.response.status == 200
    assert step.response.status_text == "OK"
    assert json.loads(step.response.body) == {"resourceType": "CapabilityStatement"}
    assert step.duration is not None and step.duration >= 0


@pytest.mark.asyncio
async def test_unauthorized_request_has_no_bearer_and_keeps_custom_content_type(
    fhir_config, recorded_test: TestRecord
) -> None:
    seen = install_transport(lambda request: httpx.Response(201, text="created"))

    response = await fetch_wrapper(
        "Patient",
        method="POST",
        headers={"Content-Type": "application/fhir+json"},
        body='{"resourceType": "Patient"}',
    )

    assert response.json_parsed is False
    assert response.raw_body == "created"
    [request] = seen
    assert "Authorization" not in request.headers
    assert request.headers["Content-Type"] == "application/fhir+json"
    assert request.content == b'{"resourceType": "Patient"}'
    assert recorded_test.steps[0].request.body == '{"resourceType": "Patient"}'


@pytest.mark.asyncio
async def test_override_base_url_wins(fhir_config, recorded_test: TestRecord) -> None:
    seen = install_transport(lambda request: httpx.Response(200, json={}))

    await fetch_wrapper("metadata", override_base_url="http://other.test/fhir")

    assert str(seen[0].url) == "http://other.test/fhir/metadata"


@pytest.mark.asyncio
async def test_transport_error_is_recorded_as_error_step(fhir_config, recorded_test: TestRecord) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    install_transport(refuse)

    response = await fetch_wrapper("metadata")

    assert response.success is False
    assert response.status == ERROR_STATUS
    assert isinstance(response.error, httpx.ConnectError)
    [step] = recorded_test.steps
    assert step.response.status == -1
    assert step.response.status_text == "Error"
    assert step.response.headers == {}
    assert step.response.body == "connection refused"


@pytest.mark.asyncio
async def test_search_falls_back_to_post_when_get_is_not_allowed(
    fhir_config, recorded_test: TestRecord
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(405)
        return httpx.Response(200, json={"resourceType": "Bundle", "total": 0})

    seen = install_transport(handler)

    response = await fetch_search_wrapper("Patient?family=Smith&_count=5", authorized=True)

    assert response.status == 200
    assert response.json_body["resourceType"] == "Bundle"
    get_request, post_request = seen
    assert str(get_request.url) == "http://fhir.test/r4/Patient?family=Smith&_count=5"
    assert str(post_request.url) == "http://fhir.test/r4/Patient/_search"
    assert post_request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert post_request.content == b"family=Smith&_count=5"
    assert [step.request.method for step in recorded_test.steps] == ["GET", "POST"]


@pytest.mark.asyncio
async def test_search_without_405_makes_a_single_request(fhir_config, recorded_test: TestRecord) -> None:
    seen = install_transport(lambda request: httpx.Response(200, json={"resourceType": "Bundle"}))

    await fetch_search_wrapper("Patient")

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_request_outside_a_test_is_rejected(fhir_config) -> None:
    install_transport(lambda request: httpx.Response(200, json={}))

    with pytest.raises(InteractionOutsideTestError):
        await fetch_wrapper("metadata")
