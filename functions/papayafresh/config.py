"""
Configuration and settings for the PapayaFresh API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "https://hosting-xk33.onrender.com",
]


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    server_name: str = Field(default="PapayaFresh API")
    server_version: str = Field(default="2.0.0")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")

    # Browser origins allowed to call the API (admin console deployments).
    cors_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    # Firebase Admin SDK
    firebase_credentials_path: str = Field(default="serviceAccountKey.json")
    firebase_database_url: Optional[str] = Field(
        default="https://papayafresh-db1.firebaseio.com"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="PAPAYAFRESH_USE_IN_MEMORY_BACKENDS"
    )

    # Threads used to fetch per-user sub-collections in parallel.
    fetch_workers: int = Field(default=8, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
