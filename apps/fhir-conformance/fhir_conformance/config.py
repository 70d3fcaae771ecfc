"""Runner settings and the read-only context handed to conformance suites."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urljoin

import yaml
from pydantic import BaseModel, Field, ValidationError

CONFIG_ENV_VAR = "FHIR_CONFORMANCE_CONFIG"
BASE_URL_ENV_VAR = "FHIR_SERVER_URL"
ACCESS_TOKEN_ENV_VAR = "FHIR_ACCESS_TOKEN"


class ConfigError(ValueError):
    """Configuration file missing, unreadable or invalid."""


class ConformanceConfig(BaseModel):
    """Server under test and the optional features it claims to support."""

    fhir_server_url: str = "http://localhost:8080/fhir"
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    scope: str = "patient/*.read patient/*.write launch/patient"
    access_token: Optional[str] = None
    xml_supported: bool = False
    default_page_size: int = Field(default=20, ge=1)
    pagination_supported: bool = True
    bundle_total_mandatory: bool = False
    request_timeout: float = Field(default=30.0, gt=0)
    token_url: Optional[str] = None


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file {path} not found")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Configuration file {path} could not be parsed: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return payload


def load_config(path: Optional[Path] = None, base_url: Optional[str] = None) -> ConformanceConfig:
    """Build the settings with priority: CLI > environment > file > defaults."""

    payload: dict[str, Any] = {}
    config_path = path or (Path(os.environ[CONFIG_ENV_VAR]) if os.environ.get(CONFIG_ENV_VAR) else None)
    if config_path is not None:
        payload.update(_read_config_file(config_path))

    if os.environ.get(BASE_URL_ENV_VAR):
        payload["fhir_server_url"] = os.environ[BASE_URL_ENV_VAR]
    if os.environ.get(ACCESS_TOKEN_ENV_VAR):
        payload["access_token"] = os.environ[ACCESS_TOKEN_ENV_VAR]
    if base_url:
        payload["fhir_server_url"] = base_url

    try:
        return ConformanceConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


_CONFIG: Optional[ConformanceConfig] = None


def get_config() -> ConformanceConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def set_config(config: Optional[ConformanceConfig]) -> None:
    global _CONFIG
    _CONFIG = config


class ConformanceContext:
    """Accessors suites use to adapt to the server's declared capabilities."""

    def __init__(self, config: ConformanceConfig) -> None:
        self._config = config

    def get_base_url(self) -> str:
        return self._config.fhir_server_url

    def get_default_page_size(self) -> int:
        return self._config.default_page_size

    def is_pagination_supported(self) -> bool:
        return self._config.pagination_supported

    def is_xml_supported(self) -> bool:
        return self._config.xml_supported

    def is_bundle_total_mandatory(self) -> bool:
        return self._config.bundle_total_mandatory

    def create_relative_url(self, url: str) -> str:
        """Turn an absolute server URL (e.g. a bundle link) into one relative to the base."""

        base = self.get_base_url()
        base = base if base.endswith("/") else base + "/"
        absolute = urljoin(base, url)
        if absolute.startswith(base):
            return absolute[len(base):]
        return url
