"""Bridge settings.

Values come from keyword arguments, then from the environment
(``MCP_SERVER_URL`` and ``GHMCP_*`` variables).  The CLI layers its own
options on top through :meth:`BridgeSettings.from_env`.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class BridgeSettings(BaseSettings):
    """Runtime configuration for the stdio bridge."""

    model_config = SettingsConfigDict(
        env_prefix="GHMCP_",
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    server_url: str = Field(
        default="http://localhost:3000",
        validation_alias="MCP_SERVER_URL",
        description="Base URL of the HTTP API that fronts GitHub.",
    )
    user_agent: str = "GitHub-MCP-Server/2.0"
    server_name: str = "github-mcp-server-enhanced"
    server_version: str = "2.0.0"
    http_timeout: float | None = Field(
        default=None,
        description="Seconds before an HTTP call is abandoned; None waits indefinitely.",
    )
    log_level: LogLevel = "INFO"

    @field_validator("server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("http_timeout", mode="before")
    @classmethod
    def _blank_timeout(cls, value: Any) -> Any:
        return None if value == "" else value

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeSettings:
        """Build settings from the environment, then apply *overrides*.

        Overrides whose value is ``None`` are ignored so unset CLI options do
        not mask the environment.
        """
        return cls(**{k: v for k, v in overrides.items() if v is not None})
