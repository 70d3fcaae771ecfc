"""Test bootstrap for fhir-conformance."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest
import structlog

APPS_DIR = Path(__file__).resolve().parents[2]
for package in ["fhir-conformance", "test-recorder"]:
    path_str = str(APPS_DIR / package)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fhir_conformance.config import ConformanceConfig, set_config  # noqa: E402
from fhir_conformance.fetch import set_http_client  # noqa: E402
from fhir_conformance.oauth import clear_token_cache  # noqa: E402
from test_recorder.host import reset_runner  # noqa: E402
from test_recorder.state import reset_state  # noqa: E402

ENV_VARS = (
    "FHIR_CONFORMANCE_CONFIG",
    "FHIR_SERVER_URL",
    "FHIR_ACCESS_TOKEN",
    "CONSOLE_OUTPUT_FORMAT",
)


@pytest.fixture(autouse=True)
def isolated_runtime(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_state()
    reset_runner()
    set_config(None)
    set_http_client(None)
    clear_token_cache()
    yield
    set_http_client(None)
    set_config(None)
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def fhir_config() -> ConformanceConfig:
    config = ConformanceConfig(fhir_server_url="http://fhir.test/r4", access_token="token-123")
    set_config(config)
    return config
