"""Application settings, loaded from CSVQUERY_* environment variables or .env."""
from __future__ import annotations
from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from csvquery.domain.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CSVQUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DB_PATH: Path | None = None
    QUERY: str = ""

    HOST: str = "0.0.0.0"
    PORT: int = Field(default=80, ge=0, le=65535)
    QUERY_PATH: str = "/query"

    # One connection keeps writes to the SQLite file strictly serialized.
    POOL_SIZE: int = Field(default=1, ge=1)
    # None: wait for a free connection as long as it takes.
    POOL_TIMEOUT: float | None = Field(default=None, gt=0)
    BUSY_TIMEOUT_MS: int = Field(default=5000, ge=0)
    FETCH_SIZE: int = Field(default=100, ge=1)

    LOG_LEVEL: str = "INFO"

    @field_validator("QUERY_PATH")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("QUERY_PATH must start with '/'")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    def check(self) -> None:
        """Raise ConfigurationError unless the pipeline can be built from these settings."""
        if self.DB_PATH is None:
            raise ConfigurationError("DB path is not set (--db or CSVQUERY_DB_PATH)")
        if not self.DB_PATH.is_file():
            raise ConfigurationError(f"DB file not found: {self.DB_PATH}")
        if not self.QUERY.strip():
            raise ConfigurationError("SQL query is not set (--query or CSVQUERY_QUERY)")


settings = Settings()
