"""3.2.1.3.2 Self Link - Understanding a Performed Search."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from test_recorder.assertions import assert_equals, assert_exists, assert_true
from test_recorder.lifecycle import it

from ...config import ConformanceContext
from ...creators import create_test_patient, random_text
from ...fetch import FORM_CONTENT_TYPE, fetch_wrapper


def find_self_link(bundle: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    for link in (bundle or {}).get("link") or []:
        if link.get("relation") == "self":
            return link
    return None


def run_self_link_tests(context: ConformanceContext) -> None:
    @it("Search result bundle should contain a self link")
    async def _has_self_link() -> None:
        family = f"SelfLink{random_text()}"
        await create_test_patient(context, family=family)
        response = await fetch_wrapper(f"Patient?family={family}", authorized=True)

        assert_equals(response.success, True, "Search request should be successful")
        self_link = find_self_link(response.json_body)
        assert_exists(self_link, "Bundle should contain a self link")
        assert_exists((self_link or {}).get("url"), "Self link should have a URL")

    @it("Self link should contain all used search parameters")
    async def _has_parameters() -> None:
        family = f"Parameter{random_text()}"
        await create_test_patient(context, family=family, gender="male")
        search = {"family": family, "gender": "male", "_count": "10"}
        query = "&".join(f"{key}={value}" for key, value in search.items())
        response = await fetch_wrapper(f"Patient?{query}", authorized=True)

        assert_equals(response.success, True, "Search request should be successful")
        self_link = find_self_link(response.json_body)
        assert_exists(self_link, "Bundle should contain a self link")
        params = parse_qs(urlparse((self_link or {}).get("url", "")).query)
        for key, value in search.items():
            assert_equals(
                params.get(key, [None])[0],
                value,
                f"Self link should contain the search parameter: {key}",
            )

    @it("Self link should be expressed as an HTTP GET-based search")
    async def _get_based() -> None:
        family = f"GetBased{random_text()}"
        await create_test_patient(context, family=family)
        response = await fetch_wrapper(
            "Patient/_search",
            method="POST",
            authorized=True,
            body=f"family={family}",
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )

        assert_equals(response.success, True, "POST-based search request should be successful")
        self_link = find_self_link(response.json_body)
        assert_exists(self_link, "Bundle should contain a self link")
        url = urlparse((self_link or {}).get("url", ""))
        assert_true(url.path.endswith("Patient"), "Self link should be expressed as a GET-based search")
        assert_equals(
            parse_qs(url.query).get("family", [None])[0],
            family,
            "Self link should contain the search parameter",
        )

    @it("Self link may be absolute or relative URI")
    async def _absolute_or_relative() -> None:
        family = f"Uri{random_text()}"
        await create_test_patient(context, family=family)
        response = await fetch_wrapper(f"Patient?family={family}", authorized=True)

        self_link = find_self_link(response.json_body)
        assert_exists(self_link, "Bundle should contain a self link")
        url = (self_link or {}).get("url", "")
        is_absolute = url.startswith(("http://", "https://"))
        is_relative = url.startswith(("/", "Patient"))
        assert_true(is_absolute or is_relative, "Self link should be either an absolute or relative URI")
