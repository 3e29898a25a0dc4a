"""Configuration loading from TOML files and the environment."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartpull.core.models import Config

if TYPE_CHECKING:
    from pathlib import Path


class EnvironmentSettings(BaseSettings):
    """Overrides resolved from ``SMARTPULL_*`` environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    remote: str | None = Field(default=None, alias="SMARTPULL_REMOTE")
    branch: str | None = Field(default=None, alias="SMARTPULL_BRANCH")
    dry_run: bool | None = Field(default=None, alias="SMARTPULL_DRY_RUN")
    mcp_server: bool = Field(default=False, alias="SMARTPULL_MCP_SERVER")

    @field_validator("remote", "branch", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def load_config(*, path: Path) -> Config:
    """Read ``path`` as TOML and validate it into a :class:`Config`."""
    if not path.exists():
        raise FileNotFoundError(str(path))
    if not path.is_file():
        message = f"Configuration path is not a file: {path}"
        raise ValueError(message)

    with path.open("rb") as stream:
        try:
            data = tomllib.load(stream)
        except tomllib.TOMLDecodeError as exc:
            message = f"Configuration file {path} is not valid TOML: {exc}"
            raise ValueError(message) from exc

    return Config.model_validate(data)


def apply_environment(config: Config, settings: EnvironmentSettings) -> Config:
    """Return ``config`` with environment overrides applied."""
    pull_updates: dict[str, object] = {}
    if settings.remote is not None:
        pull_updates["remote"] = settings.remote.strip()
    if settings.branch is not None:
        pull_updates["branch"] = settings.branch.strip()

    updates: dict[str, object] = {}
    if pull_updates:
        updates["pull"] = config.pull.model_copy(update=pull_updates)
    if settings.dry_run is not None:
        updates["dry_run"] = settings.dry_run
    if not updates:
        return config
    return config.model_copy(update=updates)


__all__ = ["EnvironmentSettings", "apply_environment", "load_config"]
