"""Application settings via pydantic-settings."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with CONNECTOR_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="CONNECTOR_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Bot database ---
    database_url: str = "sqlite+aiosqlite:///data/NadekoBot.db"
    credentials_path: str = "credentials.json"

    # --- Tokens ---
    password: str = ""
    jwt_algorithm: str = "HS256"
    token_max_age_seconds: int | None = None

    # --- Endpoint policy ---
    read_only: bool = False
    disabled_endpoints: list[str] = []


class BotCredentials(BaseModel):
    """The subset of the bot's credentials.json this service reads."""

    client_id: str = Field(alias="ClientId")
    owner_ids: list[str] = Field(default_factory=list, alias="OwnerIds")

    @field_validator("client_id", mode="before")
    @classmethod
    def _client_id_as_str(cls, value: object) -> str:
        return str(value)

    @field_validator("owner_ids", mode="before")
    @classmethod
    def _owner_ids_as_str(cls, value: object) -> list[str]:
        if value is None:
            return []
        return [str(v) for v in value]  # type: ignore[union-attr]


def load_bot_credentials(path: str | Path) -> BotCredentials:
    """Parse the bot's credentials file.

    Discord ids are plain JSON integers there; Python's json keeps them exact,
    and they are exposed as strings from here on.
    """
    path = Path(path)
    if not path.is_file():
        msg = f"Credentials file not found: {path}"
        raise FileNotFoundError(msg)
    return BotCredentials.model_validate(json.loads(path.read_text(encoding="utf-8-sig")))


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
