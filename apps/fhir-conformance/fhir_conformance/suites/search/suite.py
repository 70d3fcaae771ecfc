"""FHIR search clauses."""

from __future__ import annotations

from test_recorder.host import before_all
from test_recorder.lifecycle import describe

from ...config import ConformanceConfig, ConformanceContext
from ...fetch import get_http_client
from ...oauth import get_access_token
from .self_link_conformance import run_self_link_tests
from .total_count_conformance import run_total_count_tests


def search_suite(config: ConformanceConfig) -> None:
    context = ConformanceContext(config)

    @before_all
    async def _resolve_access_token() -> None:
        # Fails the whole group early when the token exchange is rejected.
        await get_access_token(config, client=get_http_client())

    describe(
        "3.2.1.3.2 Self Link - Understanding a Performed Search",
        lambda: run_self_link_tests(context),
    )
    describe("3.2.1.6.2 Total count and page size", lambda: run_total_count_tests(context))
