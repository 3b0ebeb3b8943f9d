"""Application configuration."""
from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(
        default="sqlite:///data/flowise.db",
        validation_alias=AliasChoices("DATABASE_URL"),
    )
    nodes_source_dir: str = "flowise-source/packages/components/nodes"
    marketplace_dir: str = "flowise-source/packages/server/marketplaces"
    source_glob: str = "**/*.ts"
    flowise_api_url: str = Field(
        default="",
        validation_alias=AliasChoices("FLOWISE_API_URL"),
    )
    flowise_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("FLOWISE_API_KEY"),
    )
    request_timeout: float = 30.0
    log_level: str = "INFO"


settings = Settings()
