"""Lightweight configuration for the gem battle engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="GEMBATTLE_"
    )

    data_dir: Path = Field(default=Path("saves"), description="Where JSON save slots live")
    database_url: str = Field(
        default="sqlite:///saves/gembattle.db",
        description="SQLAlchemy URL used when the SQL slot backend is selected",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    storage_backend: Literal["json", "sql", "memory"] = Field(
        default="json", description="Which slot backend persists saves"
    )
    save_max_age_days: int = Field(
        default=7,
        description="Game-state snapshots older than this are treated as absent",
        gt=0,
    )
    rng_seed: int | None = Field(
        default=None, description="Fixed seed for reproducible runs (None draws from the OS)"
    )
    log_level: str = Field(default="INFO", description="Root logger level for the CLI")
    rules_version: str = Field(default="1.0", description="Ruleset version used by the domain")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
