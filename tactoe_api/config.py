"""
Configuration and settings for the backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


MAJOR_VERSION = 1
MINOR_VERSION = 3


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # MongoDB
    mongo_uri: Optional[str] = Field(default=None)
    mongo_db: str = Field(default="tactoe")
    mongo_timeout_ms: int = Field(default=5000, ge=1)

    # GridFS
    gridfs_bucket: str = Field(default="fs")
    chunk_size_bytes: int = Field(default=255 * 1024, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # HTTP
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["https://lewistactoe.lewisunivcs.com"]
    )
    static_dir: str = Field(default="static")

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
