"""Environment-driven configuration for the wellbeing tracker API.

Every knob the service reads lives here so that nothing else in the code base
has to reach for ``os.environ``. Values come from the process environment and
the optional ``.env``/``.env.local`` files; ``get_settings`` caches the result.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Browser Wellbeing Tracker"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")

    # Empty means "SQLite file inside DATA_DIR", resolved in ``get_settings``.
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: int = 30

    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_HOURS: int = 700
    BCRYPT_ROUNDS: int = 10

    # IANA zone used to decide which calendar day an observation belongs to.
    TRACKING_TZ: str = "UTC"

    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)
    ALLOW_EXTENSION_ORIGINS: bool = True

    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    @property
    def is_sqlite(self) -> bool:
        return self.DB_URL.startswith("sqlite")

    @property
    def extension_origin_regex(self) -> str | None:
        return r"chrome-extension://.*" if self.ALLOW_EXTENSION_ORIGINS else None

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    if not settings.DB_URL:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR / 'wellbeing.db'}"
    return settings


settings = get_settings()
