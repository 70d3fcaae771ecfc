"""3.2.0.2 read."""

from __future__ import annotations

import json
import time

from test_recorder.assertions import assert_equals, assert_exists, assert_true
from test_recorder.lifecycle import it

from ...config import ConformanceContext
from ...creators import create_test_patient
from ...fetch import fetch_wrapper


def run_read_tests(context: ConformanceContext) -> None:
    @it("Read - Successful read of existing resource")
    async def _existing() -> None:
        patient_id = (await create_test_patient(context)).get("id")
        response = await fetch_wrapper(f"Patient/{patient_id}", authorized=True)

        assert_equals(response.success, True, "Read request should be successful")
        assert_equals(response.status, 200, "Should return 200 OK for successful read")
        assert_equals(
            (response.json_body or {}).get("id"),
            patient_id,
            "Returned resource should have the correct id",
        )
        assert_exists(response.headers.get("ETag"), "Response should include an ETag header")
        assert_exists(
            response.headers.get("Last-Modified"),
            "Response should include a Last-Modified header",
        )

    @it("Read - Attempt to read non-existent resource")
    async def _non_existent() -> None:
        missing_id = f"non-existent-patient-{int(time.time() * 1000)}-99"
        response = await fetch_wrapper(f"Patient/{missing_id}", authorized=True)

        assert_equals(response.success, False, "Read request for non-existent resource should fail")
        assert_equals(response.status, 404, "Should return 404 Not Found for non-existent resource")

    @it("Read - Attempt to read deleted resource")
    async def _deleted() -> None:
        created = await fetch_wrapper(
            "Patient",
            method="POST",
            authorized=True,
            body=json.dumps({"resourceType": "Patient", "name": [{"family": "DeleteTest"}]}),
        )
        patient_id = (created.json_body or {}).get("id")
        await fetch_wrapper(f"Patient/{patient_id}", method="DELETE", authorized=True)

        response = await fetch_wrapper(f"Patient/{patient_id}", authorized=True)

        assert_equals(response.success, False, "Read request for deleted resource should fail")
        assert_equals(response.status, 410, "Should return 410 Gone for deleted resource")

    @it("Read - Summary parameter (text)")
    async def _summary_text() -> None:
        patient_id = (await create_test_patient(context)).get("id")
        response = await fetch_wrapper(f"Patient/{patient_id}?_summary=text", authorized=True)

        assert_equals(response.status, 200, "Should return 200 OK for successful read with summary")
        patient = response.json_body or {}
        assert_exists(patient.get("text"), "Returned resource should include text")
        assert_exists(patient.get("id"), "Returned resource should include id")
        assert_exists(patient.get("meta"), "Returned resource should include meta")
        tags = (patient.get("meta") or {}).get("tag") or []
        assert_true(
            any(tag.get("code") == "SUBSETTED" for tag in tags),
            "Resource should be marked as SUBSETTED",
        )
        assert_equals(patient.get("resourceType"), "Patient", "ResourceType should be present")
