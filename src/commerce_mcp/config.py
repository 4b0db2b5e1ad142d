"""Server configuration — pydantic settings loaded from YAML.

Example ``commerce-mcp.yaml``::

    name: demo-shop
    require_initialize: false
    max_batch_size: 50
    catalog_path: ./catalog.yaml
    pricing:
      tax_rate: 0.08
      shipping_flat_rate: 10
    http:
      port: 8080
    telemetry:
      enabled: true
      otlp_endpoint: ${OTLP_ENDPOINT}
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from commerce_mcp import __version__
from commerce_mcp.commerce.models import PricingPolicy
from commerce_mcp.protocol.session import SUPPORTED_PROTOCOL_VERSIONS


class SettingsError(Exception):
    """Raised when a settings or catalog file fails parsing or validation."""


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    export_to_console: bool = False


class HttpSettings(BaseModel):
    """Bind address and session lifetime for the HTTP/WebSocket transport."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    # Seconds before an idle Mcp-Session-Id session is dropped; None keeps it.
    session_idle_timeout: float | None = Field(default=1800.0, gt=0)


class ServerSettings(BaseModel):
    """Top-level server settings."""

    name: str = "commerce-mcp"
    version: str = __version__
    protocol_versions: list[str] = Field(default_factory=lambda: list(SUPPORTED_PROTOCOL_VERSIONS))
    allow_batch: bool = True
    max_batch_size: int | None = Field(default=100, ge=1)
    require_initialize: bool = False
    currency: str = "USD"
    pricing: PricingPolicy = Field(default_factory=PricingPolicy)
    catalog_path: Path | None = None
    log_level: str = "INFO"
    http: HttpSettings = Field(default_factory=HttpSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @field_validator("protocol_versions")
    @classmethod
    def _non_empty_versions(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "protocol_versions must list at least one version"
            raise ValueError(msg)
        return value


class SettingsLoader:
    """Load and validate a settings YAML file into :class:`ServerSettings`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> ServerSettings:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.  A relative
        ``catalog_path`` is resolved against the settings file's directory.

        Raises:
            SettingsError: On read, YAML parse or schema validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise SettingsError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SettingsError("Settings YAML must be a mapping")

        try:
            settings = ServerSettings.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc

        if settings.catalog_path is not None and not settings.catalog_path.is_absolute():
            settings.catalog_path = self._path.parent / settings.catalog_path
        return settings
