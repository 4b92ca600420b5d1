"""Credentials and connection settings for the managed cloud index."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import config
from ingestion.errors import ConfigError

logger = logging.getLogger(__name__)


class CloudSettings(BaseSettings):
    """Connection settings read from ``LLAMA_CLOUD_*`` environment variables."""

    api_key: str | None = Field(default=None, description="LLAMA_CLOUD_API_KEY")
    base_url: str = Field(default=config.DEFAULT_BASE_URL, description="LLAMA_CLOUD_BASE_URL")
    organization_id: str | None = Field(
        default=None, description="LLAMA_CLOUD_ORGANIZATION_ID"
    )
    project_name: str | None = Field(default=None, description="LLAMA_CLOUD_PROJECT_NAME")

    model_config = SettingsConfigDict(env_prefix="LLAMA_CLOUD_", extra="ignore")

    @field_validator("base_url", mode="before")
    @classmethod
    def _default_base_url(cls, v: Any) -> Any:
        # An exported-but-empty LLAMA_CLOUD_BASE_URL means "use the service default".
        if v is None or (isinstance(v, str) and not v.strip()):
            return config.DEFAULT_BASE_URL
        return v.strip().rstrip("/") if isinstance(v, str) else v

    @field_validator("api_key", "organization_id", "project_name", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def redacted(self) -> dict[str, Any]:
        """Settings safe to log: the API key is reduced to a set/unset marker."""
        values = self.model_dump()
        values["api_key"] = "[REDACTED]" if self.api_key else None
        return values


def load_env_files(paths: Iterable[str | Path] = config.ENV_FILES) -> list[Path]:
    """Load ``.env`` style files without overriding variables already set.

    Earlier paths take precedence because later loads never override.
    """
    loaded: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            _ = load_dotenv(path, override=False)
            loaded.append(path)
    return loaded


def load_settings(**overrides: Any) -> CloudSettings:
    """Read settings from the environment, applying non-None overrides."""
    values = {key: value for key, value in overrides.items() if value is not None}
    return CloudSettings(**values)


def validate_settings(
    settings: CloudSettings, project_override: str | None = None
) -> str:
    """Fail fast on missing credentials; return the project name to use."""
    project_name = project_override or settings.project_name
    missing: list[str] = []
    if not project_name:
        missing.append("LLAMA_CLOUD_PROJECT_NAME")
    if not settings.api_key:
        missing.append("LLAMA_CLOUD_API_KEY")
    if missing:
        raise ConfigError(
            f"{' and '.join(missing)} environment variable(s) must be set."
        )
    assert project_name is not None
    return project_name


__all__ = ["CloudSettings", "load_env_files", "load_settings", "validate_settings"]
