"""Access token resolution for authorized requests."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from .config import ConformanceConfig

LOGGER = structlog.get_logger("fhir_conformance.oauth")

_TOKEN_CACHE: dict[str, str] = {}


class OAuthError(RuntimeError):
    """Token endpoint refused the client credentials or answered garbage."""


def clear_token_cache() -> None:
    _TOKEN_CACHE.clear()


async def get_access_token(
    config: ConformanceConfig, client: Optional[httpx.AsyncClient] = None
) -> Optional[str]:
    """Return the bearer token for the server under test, or ``None``."""

    if config.access_token:
        return config.access_token
    if not (config.token_url and config.client_id and config.client_secret):
        LOGGER.debug("access_token_not_configured")
        return None

    cache_key = f"{config.token_url}|{config.client_id}|{config.scope}"
    if cache_key in _TOKEN_CACHE:
        return _TOKEN_CACHE[cache_key]

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=config.request_timeout)
    try:
        response = await http.post(
            config.token_url,
            data={"grant_type": "client_credentials", "scope": config.scope},
            auth=(config.client_id, config.client_secret),
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as exc:
        raise OAuthError(f"Token request to {config.token_url} failed: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code != 200:
        raise OAuthError(f"Token endpoint returned {response.status_code}: {response.text}")
    try:
        token = response.json()["access_token"]
    except (ValueError, KeyError, TypeError) as exc:
        raise OAuthError("Token endpoint response did not contain an access_token") from exc

    LOGGER.info("access_token_obtained", token_url=config.token_url, client_id=config.client_id)
    _TOKEN_CACHE[cache_key] = token
    return token
