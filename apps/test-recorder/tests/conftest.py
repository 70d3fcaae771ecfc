"""Test bootstrap for test-recorder."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

APP_ROOT = Path(__file__).resolve().parents[1]
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from test_recorder.host import reset_runner  # noqa: E402
from test_recorder.state import reset_state  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_recorder():
    reset_state()
    runner = reset_runner()
    yield runner
    reset_state()
    reset_runner()


@pytest.fixture
def http_request() -> dict[str, Any]:
    return {
        "method": "GET",
        "url": "http://fhir.test/metadata",
        "headers": {"Accept": "application/fhir+json"},
    }


@pytest.fixture
def http_response() -> dict[str, Any]:
    return {
        "status": 200,
        "statusText": "OK",
        "headers": {"content-type": "application/fhir+json"},
        "body": '{"resourceType": "CapabilityStatement"}',
    }
