"""Core configuration.

- Centralizes environment variables (pydantic-settings) without leaking
  them into the CLI.
- Adapters (HTTP client, credentials) read settings from one place.
- `ccp-doctor configure` persists defaults in a per-user `.env`, which
  `AppSettings` reads after the project one.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

import typer
from dotenv import dotenv_values
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG = logging.getLogger(__name__)

APP_NAME = "cost-center-provisioner"


def get_user_env_file() -> Path:
    """Per-user `.env` (XDG config dir, Application Support, or %APPDATA%)."""

    return Path(typer.get_app_dir(APP_NAME)) / ".env"


def _read_env_file(path: Path) -> dict[str, str]:
    try:
        values = dotenv_values(path, interpolate=False, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _LOG.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    return {key: value for key, value in values.items() if value is not None}


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Merge `values` into the user `.env` and return its path.

    Keys already in the file are kept unless overridden. The file is
    rewritten sorted by key.
    """

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    merged = _read_env_file(env_path) if env_path.is_file() else {}
    merged.update({key: value for key, value in values.items() if value is not None})

    body = "".join(f"{key}={merged[key]}\n" for key in sorted(merged))
    env_path.write_text(f"# {APP_NAME} user config, written by `ccp-doctor configure`\n{body}", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Application settings.

    Values come from `CCP_*` environment variables, a project `.env`, and the
    per-user `.env` written by `ccp-doctor configure`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CCP_",
        extra="ignore",
        case_sensitive=False,
        # Project file first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://api.github.com",
        min_length=8,
        description="REST API root (GHE.com tenants use https://api.<subdomain>.ghe.com).",
    )
    web_base_url: str = Field(
        default="https://github.com",
        min_length=8,
        description="Web root used to print the cost center settings link.",
    )
    api_version: str = Field(
        default="2022-11-28",
        min_length=1,
        description="Value of the X-GitHub-Api-Version header.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="cost-center-provisioner/0.1",
        min_length=1,
        description="User-Agent sent to the billing API.",
    )

    default_pru_rate: Decimal = Field(
        default=Decimal("0.04"),
        ge=0,
        description="USD per premium request used when --pru-rate is omitted.",
    )

    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CCP_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"),
        description="Token with enterprise billing read/write. Falls back to `gh auth token`.",
    )
    gh_binary: str = Field(
        default="gh",
        min_length=1,
        description="GitHub CLI executable used to read the stored session token.",
    )
    gh_hostname: str | None = Field(
        default=None,
        description="Host passed to `gh auth token --hostname` (GHE.com tenants).",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level for diagnostics on stderr.",
    )
