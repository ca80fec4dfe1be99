"""
Configuration and settings for the PlanIt API.

Field names map to environment variables case-insensitively
(``database_url`` reads ``DATABASE_URL``).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Dev server (planit-api)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    reload: bool = Field(default=False)

    # Relational + spatial store (Postgres/PostGIS expected)
    database_url: Optional[str] = Field(default=None)

    # Hosted auth service
    auth_url: Optional[str] = Field(default=None)
    auth_api_key: Optional[str] = Field(default=None)
    auth_timeout_seconds: float = Field(default=10.0)
    session_cookie_name: str = Field(default="planit-session")

    # S3-compatible storage for banner images
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    storage_public_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Address geocoding
    geocoder_url: str = Field(
        default="https://nominatim.openstreetmap.org/search"
    )
    geocoder_user_agent: str = Field(default="PlanIt-App/1.0")
    geocoder_timeout_seconds: float = Field(default=10.0)

    # Query defaults
    default_radius_meters: float = Field(default=10000.0)
    default_page_size: int = Field(default=50)
    search_page_size: int = Field(default=20)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
