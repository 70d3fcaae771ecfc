"""Factories that create fixture resources on the server under test."""

from __future__ import annotations

import json
import uuid
from typing import Any, Optional

from test_recorder.assertions import assert_true

from .config import ConformanceContext
from .fetch import fetch_wrapper


def random_text() -> str:
    return uuid.uuid4().hex[:12]


def build_patient(
    *,
    family: Optional[str] = None,
    given: Optional[list[str]] = None,
    gender: str = "unknown",
    birth_date: Optional[str] = "1990-01-01",
    active: bool = True,
    identifier: Optional[list[dict[str, Any]]] = None,
    resource_id: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Patient resource with test defaults; ``extra`` keys are copied verbatim."""

    patient: dict[str, Any] = {
        "resourceType": "Patient",
        "identifier": identifier or [{"value": f"patient-id-{random_text()}"}],
        "name": [{"family": family or "TestFamily", "given": given or ["TestGiven"]}],
        "gender": gender,
        "active": active,
    }
    if birth_date is not None:
        patient["birthDate"] = birth_date
    if resource_id is not None:
        patient["id"] = resource_id
    patient.update(extra)
    return patient


async def create_test_patient(context: ConformanceContext, **options: Any) -> dict[str, Any]:
    """POST a patient and return the stored resource as the server echoed it."""

    response = await fetch_wrapper(
        "Patient",
        method="POST",
        authorized=True,
        body=json.dumps(build_patient(**options)),
        override_base_url=context.get_base_url(),
    )
    assert_true(response.success, "Test Patient should be created successfully")
    return response.json_body or {}
