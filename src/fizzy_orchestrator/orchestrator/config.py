"""Configuration for the Fizzy orchestrator.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

`FIZZY_TOKEN` is the primary token variable; `FIZZY_ACCESS_TOKEN` is still accepted for
older setups.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_TOKEN = "FIZZY_TOKEN"
ENV_TOKEN_LEGACY = "FIZZY_ACCESS_TOKEN"
ENV_BASE_URL = "FIZZY_BASE_URL"
ENV_ACCOUNT = "FIZZY_ACCOUNT"

DEFAULT_BASE_URL = "https://app.fizzy.do"


def normalize_slug(value: str) -> str:
    """Strip one leading slash so slugs copied from Fizzy URLs ("/897362094") work."""

    return value[1:] if value.startswith("/") else value


class FizzySettings(BaseSettings):
    """Settings for talking to the Fizzy API.

    Environment variables:
    - FIZZY_TOKEN (or FIZZY_ACCESS_TOKEN)
    - FIZZY_BASE_URL               (optional)
    - FIZZY_HTTP_TIMEOUT_SECONDS   (optional)
    - LOG_LEVEL                    (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `FizzySettings(_env_file=path_to_env)`.
    """

    token: str = Field(
        default="",
        validation_alias=AliasChoices(ENV_TOKEN, ENV_TOKEN_LEGACY),
        description="Fizzy API token used for bearer authentication",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias=ENV_BASE_URL,
        description="Fizzy base URL (useful for self-hosted installs)",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="FIZZY_HTTP_TIMEOUT_SECONDS",
        description="Timeout applied to each HTTP request",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/") or DEFAULT_BASE_URL

    @model_validator(mode="after")
    def _require_token(self) -> FizzySettings:
        if not self.token.strip():
            raise ValueError(f"{ENV_TOKEN} is required")
        return self


class AccountSettings(BaseSettings):
    """The default-account variable (`FIZZY_ACCOUNT`).

    Kept separate from :class:`FizzySettings` because it is re-read on every account
    resolution that falls through to it, and must not require a token.
    """

    account: str = Field(default="", validation_alias=ENV_ACCOUNT)

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")


def account_from_env() -> str | None:
    """Return the normalised `FIZZY_ACCOUNT` value, treating an empty value as unset."""

    raw = AccountSettings().account.strip()
    if not raw:
        return None
    return normalize_slug(raw) or None
