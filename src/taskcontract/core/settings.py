"""
Centralized settings for taskcontract.

``ContractSettings`` is the single validated, cached source for the defaults
the registry, activity proxy, naming lint and CLI fall back to when a caller
does not pass an explicit value.

All fields can be set via ``TASKCONTRACT_*`` environment variables (e.g.
``TASKCONTRACT_ORPHAN_POLICY=warn``) or through a ``.env`` file.

Tags:
    taskcontract, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NAMING_PATTERN = r"^(?:[a-z][a-zA-Z0-9]*|[a-z][a-z0-9]*(?:_[a-z0-9]+)*)$"


class OrphanPolicy(str, Enum):
    """What registration does with an implementation nobody declared."""

    ERROR = "error"
    WARN = "warn"


class ContractSettings(BaseSettings):
    """taskcontract configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TASKCONTRACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    service_name: str = Field(default="taskcontract")

    # ── Registration ─────────────────────────────────────────────
    orphan_policy: OrphanPolicy = Field(
        default=OrphanPolicy.ERROR,
        description="error: refuse to start; warn: log and ignore",
    )

    # ── Activity proxy ───────────────────────────────────────────
    activity_start_to_close_seconds: float = Field(default=60.0, gt=0)

    # ── Diagnostics ──────────────────────────────────────────────
    naming_pattern: str = Field(
        default=DEFAULT_NAMING_PATTERN,
        description="Regex every workflow and operation name must match",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, ContractSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ContractSettings:
    """Load, validate, and cache a :class:`ContractSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ContractSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DEFAULT_NAMING_PATTERN",
    "OrphanPolicy",
    "ContractSettings",
    "get_settings",
    "clear_settings_cache",
]
