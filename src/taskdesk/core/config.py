"""Application settings powered by ``pydantic-settings``."""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .. import __version__ as package_version

REPOSITORY_ROOT = Path(__file__).resolve().parents[3]

EnvironmentName = Literal["development", "test", "production"]

BCRYPT_MIN_ROUNDS = 4
BCRYPT_MAX_ROUNDS = 31
DEFAULT_BCRYPT_ROUNDS = 12

_ENVIRONMENT_ALIASES: dict[str, EnvironmentName] = {
    "dev": "development",
    "local": "development",
    "testing": "test",
    "prod": "production",
}

# Defaults applied per environment to every field the caller left unset.
_PROFILE_DEFAULTS: dict[EnvironmentName, dict[str, Any]] = {
    "development": {"log_level": "DEBUG", "reload": True},
    "test": {
        "log_level": "WARNING",
        "reload": False,
        "bcrypt_rounds": BCRYPT_MIN_ROUNDS,
        "create_tables_on_startup": False,
    },
    "production": {"log_level": "INFO", "reload": False, "create_tables_on_startup": False},
}

CsvList = Annotated[list[str], NoDecode]


def _split_csv(value: object) -> list[str]:
    if isinstance(value, str):
        items: Iterable[object] = value.split(",")
    elif isinstance(value, Iterable):
        items = value
    else:
        return []
    return [text for text in (str(item).strip() for item in items) if text]


class Settings(BaseSettings):
    """Runtime configuration for the task management service."""

    model_config = SettingsConfigDict(
        env_prefix="TASKDESK_",
        env_file=(REPOSITORY_ROOT / ".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "Taskdesk"
    environment: EnvironmentName = "development"
    api_prefix: str = "/api"
    version: str = package_version
    database_url: str = "sqlite+aiosqlite:///./taskdesk.sqlite3"
    db_echo: bool = False
    create_tables_on_startup: bool = True
    cors_allow_origins: CsvList = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: CsvList = Field(default_factory=lambda: ["*"])
    cors_allow_headers: CsvList = Field(default_factory=lambda: ["*"])
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    reload: bool = True

    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    enforce_status_transitions: bool = False

    @property
    def debug(self) -> bool:
        """Whether internal error details may be exposed to clients."""
        return self.environment == "development"

    @field_validator("environment", mode="before")
    @classmethod
    def _resolve_environment(cls, value: object) -> EnvironmentName:
        name = value.strip().lower() if isinstance(value, str) else ""
        if name in _PROFILE_DEFAULTS:
            return name  # type: ignore[return-value]
        return _ENVIRONMENT_ALIASES.get(name, "development")

    @field_validator("cors_allow_origins", "cors_allow_methods", "cors_allow_headers", mode="before")
    @classmethod
    def _parse_csv(cls, value: object) -> list[str]:
        return _split_csv(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> str:
        return value.upper() if isinstance(value, str) else "INFO"

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _blank_secret_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("bcrypt_rounds", mode="before")
    @classmethod
    def _clamp_bcrypt_rounds(cls, value: object) -> int:
        try:
            rounds = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return DEFAULT_BCRYPT_ROUNDS
        return min(max(rounds, BCRYPT_MIN_ROUNDS), BCRYPT_MAX_ROUNDS)

    @model_validator(mode="after")
    def _fill_profile_defaults(self) -> "Settings":
        explicit = set(self.model_fields_set)
        for name, value in _PROFILE_DEFAULTS[self.environment].items():
            if name not in explicit:
                setattr(self, name, value)
        return self


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide ``Settings`` instance."""
    return Settings()


__all__ = ["DEFAULT_BCRYPT_ROUNDS", "EnvironmentName", "Settings", "get_settings"]
