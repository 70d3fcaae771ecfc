"""3.2.0.10 capabilities: the ``metadata`` interaction."""

from __future__ import annotations

from test_recorder.assertions import assert_equals, assert_exists
from test_recorder.lifecycle import it

from ...config import ConformanceContext
from ...fetch import fetch_wrapper


def run_capabilities_tests(context: ConformanceContext) -> None:
    @it("Capabilities - Full mode")
    async def _full_mode() -> None:
        response = await fetch_wrapper("metadata", authorized=True)

        assert_equals(response.success, True, "Capabilities request should be successful")
        assert_equals(response.status, 200, "Should return 200 OK")
        statement = response.json_body or {}
        assert_equals(
            statement.get("resourceType"),
            "CapabilityStatement",
            "Should return a CapabilityStatement resource",
        )
        assert_exists(statement.get("software"), "Should include software information")
        assert_exists(statement.get("implementation"), "Should include implementation information")
        assert_exists(statement.get("fhirVersion"), "Should include FHIR version")
        assert_exists(statement.get("rest"), "Should include REST capabilities")

    @it("Capabilities - Normative mode")
    async def _normative_mode() -> None:
        response = await fetch_wrapper("metadata?mode=normative", authorized=True)

        assert_equals(response.success, True, "Normative capabilities request should be successful")
        assert_equals(response.status, 200, "Should return 200 OK")
        assert_equals(
            (response.json_body or {}).get("resourceType"),
            "CapabilityStatement",
            "Should return a CapabilityStatement resource",
        )

    @it("Capabilities - ETag header")
    async def _etag_header() -> None:
        response = await fetch_wrapper("metadata", authorized=True)

        assert_equals(response.success, True, "Capabilities request should be successful")
        assert_exists(response.headers.get("ETag"), "Response should include an ETag header")

    @it("Capabilities - Specific FHIR version")
    async def _fhir_version() -> None:
        response = await fetch_wrapper(
            "metadata",
            authorized=True,
            headers={"Accept": "application/fhir+json; fhirVersion=4.0"},
        )

        assert_equals(response.status, 200, "Should return 200 OK")
        assert_equals(
            (response.json_body or {}).get("fhirVersion"),
            "4.0.1",
            "Should return capabilities for FHIR R4",
        )

    if context.is_xml_supported():
        @it("Capabilities - XML format")
        async def _xml_format() -> None:
            response = await fetch_wrapper("metadata?_format=xml", authorized=True)

            assert_equals(response.status, 200, "Should return 200 OK")
            assert_exists(
                response.headers.get("Content-Type"),
                "Response should declare its content type",
            )
