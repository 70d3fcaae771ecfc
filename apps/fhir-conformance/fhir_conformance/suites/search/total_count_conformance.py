"""3.2.1.6.x total count and page size of search results.

Every test creates its patients under a fresh family name so counts do not
depend on what else lives on the server.
"""

from __future__ import annotations

from test_recorder.assertions import assert_equals, assert_exists, assert_true
from test_recorder.lifecycle import it

from ...config import ConformanceContext
from ...creators import create_test_patient, random_text
from ...fetch import fetch_search_wrapper


async def _create_family(context: ConformanceContext, count: int) -> str:
    family = f"Total{random_text()}"
    for index in range(count):
        await create_test_patient(context, family=family, given=[f"TestPatient{index}"])
    return family


def run_total_count_tests(context: ConformanceContext) -> None:
    @it("Should return total count by default")
    async def _total_by_default() -> None:
        family = await _create_family(context, 3)
        response = await fetch_search_wrapper(f"Patient?family={family}", authorized=True)

        assert_equals(response.status, 200, "Server should process the search successfully")
        bundle = response.json_body or {}
        if context.is_bundle_total_mandatory():
            assert_exists(bundle.get("total"), "Bundle should contain a total count")
        if bundle.get("total") is not None:
            assert_equals(bundle["total"], 3, "Total count should match the number of created patients")

    @it("Should return an accurate count when _total=accurate")
    async def _total_accurate() -> None:
        family = await _create_family(context, 2)
        response = await fetch_search_wrapper(
            f"Patient?family={family}&_total=accurate", authorized=True
        )

        assert_equals(response.status, 200, "Server should process the search successfully")
        assert_equals(
            (response.json_body or {}).get("total"),
            2,
            "Total count should be accurate when _total=accurate",
        )

    if context.is_pagination_supported():
        @it("Should limit the number of returned resources based on _count")
        async def _count_limits_entries() -> None:
            family = await _create_family(context, 4)
            response = await fetch_search_wrapper(
                f"Patient?family={family}&_count=2", authorized=True
            )

            assert_equals(response.status, 200, "Server should process the search successfully")
            entries = (response.json_body or {}).get("entry") or []
            assert_true(len(entries) <= 2, "Number of entries should not exceed the _count parameter")
            next_links = [
                link for link in (response.json_body or {}).get("link") or [] if link.get("relation") == "next"
            ]
            assert_exists(next_links or None, "Bundle should link to the next page")

            next_page = await fetch_search_wrapper(
                context.create_relative_url(next_links[0]["url"]), authorized=True
            )
            assert_equals(next_page.status, 200, "Server should return the next page")
            next_entries = (next_page.json_body or {}).get("entry") or []
            assert_true(len(next_entries) <= 2, "Next page should honour the _count parameter")

        @it("Should not exceed the default page size when _count is omitted")
        async def _default_page_size() -> None:
            family = await _create_family(context, 2)
            response = await fetch_search_wrapper(f"Patient?family={family}", authorized=True)

            assert_equals(response.status, 200, "Server should process the search successfully")
            entries = (response.json_body or {}).get("entry") or []
            assert_true(
                len(entries) <= context.get_default_page_size(),
                "Number of entries should not exceed the default page size",
            )
