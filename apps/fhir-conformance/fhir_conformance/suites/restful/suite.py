"""FHIR RESTful API clauses."""

from __future__ import annotations

from test_recorder.host import before_all
from test_recorder.lifecycle import describe

from ...config import ConformanceConfig, ConformanceContext
from ...fetch import get_http_client
from ...oauth import get_access_token
from .capabilities_conformance import run_capabilities_tests
from .create_conformance import run_create_tests
from .read_conformance import run_read_tests


def restful_suite(config: ConformanceConfig) -> None:
    context = ConformanceContext(config)

    @before_all
    async def _resolve_access_token() -> None:
        # Fails the whole group early when the token exchange is rejected.
        await get_access_token(config, client=get_http_client())

    describe("3.2.0.10 capabilities", lambda: run_capabilities_tests(context))
    describe("3.2.0.2 read", lambda: run_read_tests(context))
    describe("3.2.0.8 create", lambda: run_create_tests(context))
