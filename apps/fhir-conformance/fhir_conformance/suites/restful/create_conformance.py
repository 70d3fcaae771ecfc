"""3.2.0.8 create."""

from __future__ import annotations

import json

from test_recorder.assertions import assert_equals, assert_exists, assert_not_equals
from test_recorder.lifecycle import it

from ...config import ConformanceContext
from ...fetch import fetch_wrapper


def run_create_tests(context: ConformanceContext) -> None:
    @it("Create - Successful creation")
    async def _successful() -> None:
        response = await fetch_wrapper(
            "Patient",
            method="POST",
            authorized=True,
            body=json.dumps({"resourceType": "Patient", "name": [{"family": "Test", "given": ["Create"]}]}),
        )

        assert_equals(response.success, True, "Create should be successful")
        assert_equals(response.status, 201, "Should return 201 Created")
        assert_exists(response.headers.get("Location"), "Should return a Location header")
        assert_exists(response.headers.get("ETag"), "Should return an ETag header")
        created = response.json_body or {}
        assert_exists(created.get("id"), "Created resource should have an id")
        assert_exists(
            (created.get("meta") or {}).get("versionId"),
            "Created resource should have a versionId",
        )

    @it("Create - Ignore provided id")
    async def _ignore_id() -> None:
        response = await fetch_wrapper(
            "Patient",
            method="POST",
            authorized=True,
            body=json.dumps(
                {
                    "resourceType": "Patient",
                    "id": "should-be-ignored",
                    "name": [{"family": "Test", "given": ["IgnoreId"]}],
                }
            ),
        )

        assert_equals(response.status, 201, "Should return 201 Created")
        assert_not_equals(
            (response.json_body or {}).get("id"),
            "should-be-ignored",
            "Server should ignore provided id",
        )

    @it("Create - Invalid resource")
    async def _invalid() -> None:
        response = await fetch_wrapper(
            "Patient",
            method="POST",
            authorized=True,
            body=json.dumps({"resourceType": "Patient", "invalidField": "This field doesn't exist"}),
        )

        assert_equals(response.success, False, "Create with invalid resource should fail")
        assert_equals(response.status, 400, "Should return 400 Bad Request for invalid resource")
        assert_exists(
            (response.json_body or {}).get("issue"),
            "Response should include an OperationOutcome with issues",
        )
