"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) away from the CLI.
- Lets adapters (Sanity/Grid) read timeouts and endpoints consistently.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


REQUIRED_ENV_VARS: dict[str, str] = {
    "sanity_project_id": "NEXT_PUBLIC_SANITY_PROJECT_ID",
    "sanity_dataset": "NEXT_PUBLIC_SANITY_DATASET",
    "sanity_api_read_token": "SANITY_API_READ_TOKEN",
}


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or unreadable."""


class AppSettings(BaseSettings):
    """Central application settings.

    The Sanity credentials keep the names used by the website's own `.env`
    so the same file can be shared. Everything else is prefixed with
    `SPONSOR_CHECK_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPONSOR_CHECK_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    sanity_project_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NEXT_PUBLIC_SANITY_PROJECT_ID", "sanity_project_id"),
        description="Sanity project identifier.",
    )
    sanity_dataset: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NEXT_PUBLIC_SANITY_DATASET", "sanity_dataset"),
        description="Sanity dataset name (e.g. 'production').",
    )
    sanity_api_read_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SANITY_API_READ_TOKEN", "sanity_api_read_token"),
        description="Bearer token with read access to the dataset.",
    )
    sanity_perspective: Literal["published", "drafts"] = Field(
        default="published",
        validation_alias=AliasChoices("SANITY_PERSPECTIVE", "sanity_perspective"),
        description="Query perspective; unknown values fall back to 'published'.",
    )
    sanity_api_version: str = Field(
        default="v2025-03-04",
        min_length=2,
        description="Dated Sanity API version used in the query URL.",
    )

    grid_graphql_url: str = Field(
        default="https://beta.node.thegrid.id/graphql",
        min_length=8,
        description="The Grid GraphQL endpoint.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    user_agent: str = Field(
        default="sponsor-check/0.1",
        min_length=1,
        description="User-Agent sent to both APIs.",
    )

    batch_size: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Slugs per Grid query.",
    )
    batch_delay_seconds: float = Field(
        default=0.2,
        ge=0,
        description="Pause between consecutive Grid batches.",
    )

    target_tag_id: str = Field(
        default="id1760088086-NEyjzLNeTcyFkhytuCu6RQ",
        min_length=1,
        description="Grid tag id that flags the event cohort.",
    )
    target_tag_label: str = Field(
        default="Breakpoint 2025",
        min_length=1,
        description="Human label for the target tag in reports.",
    )

    reference_table_path: Path = Field(
        default=Path("constants-grid.json"),
        description="JSON file mapping sponsor titles to Grid slugs (or null).",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("sanity_project_id", "sanity_dataset", "sanity_api_read_token", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("sanity_perspective", mode="before")
    @classmethod
    def _normalize_perspective(cls, value: object) -> str:
        if isinstance(value, str) and value.strip() in ("published", "drafts"):
            return value.strip()
        return "published"

    def missing_credentials(self) -> list[str]:
        """Names of required env vars that are unset or blank."""

        return [env for field, env in REQUIRED_ENV_VARS.items() if not getattr(self, field)]


def load_settings(env_file: Path | None = None) -> AppSettings:
    """Build settings and fail fast when a required credential is absent."""

    try:
        if env_file is not None:
            if not env_file.is_file():
                raise ConfigurationError(f"Env file not found: {env_file}")
            settings = AppSettings(_env_file=str(env_file))
        else:
            settings = AppSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    missing = settings.missing_credentials()
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: " + ", ".join(missing)
        )
    return settings
