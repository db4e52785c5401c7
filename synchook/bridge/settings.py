"""Bridge configuration loaded from environment variables and ``.env``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(ValueError):
    """A required setting is missing or a setting could not be parsed."""


class BridgeSettings(BaseSettings):
    """synchook settings.

    Fields map to unprefixed, case-insensitive environment variables, e.g.
    ``AUTH_KEY`` maps to ``auth_key`` and ``REQUEST_INTERVAL`` to
    ``request_interval``.  A ``.env`` file in the working directory is read
    as well; real environment variables win over it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # -- Syncthing API ---------------------------------------------------------
    auth_key: SecretStr
    """API key sent as ``X-API-KEY``.  Found in the Syncthing GUI settings."""

    address: str = "http://127.0.0.1"
    port: int = Field(default=8384, ge=1, le=65535)
    request_timeout: float = Field(default=120.0, gt=0)
    """Seconds to wait for ``/rest/events``.

    Syncthing long-polls this endpoint and holds the request open for up to a
    minute when no events are buffered, so keep this well above 60.
    """

    # -- Polling ---------------------------------------------------------------
    request_interval: int = Field(default=60, ge=1)
    """Seconds between two event fetches."""

    script_delay: int = Field(default=60, ge=0)
    """Seconds each script launch waits before spawning."""

    # -- Scripts ---------------------------------------------------------------
    scripts_file: Path = Path("scripts.json")

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    @field_validator("address")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        var = str(error["loc"][0]).upper() if error["loc"] else "<settings>"
        if error["type"] == "missing":
            problems.append(f"{var} is required but was not set")
        else:
            problems.append(f"{var}: {error['msg']} (got {error.get('input')!r})")
    return "; ".join(problems)


def load_settings(**overrides: Any) -> BridgeSettings:
    """Build settings from the environment, raising ``ConfigError`` on failure.

    Keyword overrides take precedence over the environment (used by the CLI
    and tests).
    """
    try:
        return BridgeSettings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {_describe(exc)}") from exc
