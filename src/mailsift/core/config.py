"""Mailsift configuration: OAuth client env vars + optional config.yaml."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, YamlConfigSettingsSource

from mailsift.core.models import ClientCredentials

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Nested sub-models for YAML config
# ---------------------------------------------------------------------------


class QuerySettings(BaseModel):
    """Which messages to pull."""

    label: str = "CVS"
    subject: str = "$4 Coupon!"
    lookback_days: int = Field(default=6, ge=0)
    # Gmail rejects maxResults above 500
    max_results: int = Field(default=500, ge=1, le=500)


class AuthSettings(BaseModel):
    """How the OAuth authorization code is obtained and where the token lives."""

    strategy: Literal["local", "manual"] = "local"
    callback_port: int = Field(default=3000, ge=0, le=65535)
    callback_path: str = "/oauth2callback"
    token_path: Path = Path("token.json")
    open_browser: bool = True
    timeout_seconds: float | None = None

    @field_validator("callback_path")
    @classmethod
    def path_must_be_absolute(cls, v: str) -> str:
        """Normalize 'oauth2callback' to '/oauth2callback'."""
        return v if v.startswith("/") else f"/{v}"


class ExtractionSettings(BaseModel):
    """Fan-out and per-request limits for metadata extraction."""

    # None means one worker per listed message
    max_in_flight: int | None = Field(default=None, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)


class OutputSettings(BaseModel):
    """Where results go and how the summary is printed."""

    directory: Path = Path("output")
    mapping_path: Path = Path("data") / "phone_numbers.json"
    detailed_summary: bool = False


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = "info"


# ---------------------------------------------------------------------------
# Main settings class
# ---------------------------------------------------------------------------


def _resolve_config_path() -> str | None:
    """Resolve the YAML path from MAILSIFT_CONFIG, or the cwd default.

    The default config.yaml is optional. A path named explicitly through
    MAILSIFT_CONFIG must exist; otherwise exit with a helpful message.
    """
    explicit = os.environ.get("MAILSIFT_CONFIG")
    path = Path(explicit or DEFAULT_CONFIG_PATH)
    if path.exists():
        return str(path)
    if explicit:
        print(
            f"Error: Config file not found: {path.resolve()}\n"
            f"Unset MAILSIFT_CONFIG to run with defaults, or point it at an existing file.",
            file=sys.stderr,
        )
        raise SystemExit(1)
    return None


class MailsiftSettings(BaseSettings):
    """Application settings.

    OAuth client credentials come from CLIENT_ID / CLIENT_SECRET / REDIRECT_URI
    (optionally MAILSIFT_-prefixed), from the environment or a .env file.
    Everything else lives in config.yaml sections.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILSIFT_",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    client_id: str = Field(
        default="", validation_alias=AliasChoices("CLIENT_ID", "MAILSIFT_CLIENT_ID")
    )
    client_secret: str = Field(
        default="",
        validation_alias=AliasChoices("CLIENT_SECRET", "MAILSIFT_CLIENT_SECRET"),
    )
    redirect_uri_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("REDIRECT_URI", "MAILSIFT_REDIRECT_URI"),
    )

    query: QuerySettings = QuerySettings()
    auth: AuthSettings = AuthSettings()
    extraction: ExtractionSettings = ExtractionSettings()
    output: OutputSettings = OutputSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Configure source priority: init > env vars > .env > YAML config file."""
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
        ]
        config_path = _resolve_config_path()
        if config_path is not None:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=config_path))
        return tuple(sources)

    @property
    def redirect_uri(self) -> str:
        """Explicit REDIRECT_URI, else the local callback listener's URL."""
        if self.redirect_uri_override:
            return self.redirect_uri_override
        return f"http://localhost:{self.auth.callback_port}{self.auth.callback_path}"

    @property
    def client_credentials(self) -> ClientCredentials:
        return ClientCredentials(
            client_id=self.client_id.strip(),
            client_secret=self.client_secret.strip(),
            redirect_uri=self.redirect_uri,
        )

    @property
    def log_level(self) -> str:
        """Flat accessor for logging.level."""
        return self.logging.level
