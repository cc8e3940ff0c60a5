"""Server configuration loaded from ``ANKI_MCP_*`` environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings for the statistics server.

    Every field can be overridden through the environment, e.g.
    ``ANKI_MCP_ANKI_CONNECT_URL=http://192.168.1.5:8765``.
    """

    model_config = SettingsConfigDict(env_prefix="ANKI_MCP_", extra="ignore")

    anki_connect_url: str = "http://localhost:8765"
    anki_connect_version: int = 6
    request_timeout: float = Field(default=30.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
