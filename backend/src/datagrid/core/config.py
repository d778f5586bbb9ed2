"""Configuration settings for the application.

This module defines the configuration settings using Pydantic's
SettingsConfigDict to load environment variables from a .env file.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("uvicorn")


class Settings(BaseSettings):
    """Settings class for the application."""

    # ENVIRONMENT CONFIG
    environment: str = "dev"
    testing: bool = bool(0)

    # API CONFIG
    project_name: str = "Data Grid API"
    api_v1_str: str = "/api/v1"
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # VIEW STATE STORAGE CONFIG
    view_state_backend: str = "sqlite"
    view_state_db_uri: str = "/data/view_states.db"
    view_state_ttl_days: Optional[int] = 7
    persist_extended_state: bool = True

    # GRID CONFIG
    pinned_trailing_column: Optional[str] = "actions"
    default_page_size: int = 10
    query_cache_size: int = 20  # Cached pages kept per table

    # REMOTE COLLECTION CONFIG
    collection_base_url: str = "https://rickandmortyapi.com/api/character"
    collection_timeout: float = 10.0
    page_offset: int = 1  # The remote API counts pages from 1
    empty_on_not_found: bool = True

    model_config = SettingsConfigDict(
        env_file=["../../../backend/.env", "../../.env", "../.env", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get the settings for the application."""
    logger.info("Loading config settings from the environment...")

    settings = Settings()

    logger.info(f"View state backend: {settings.view_state_backend}")
    if settings.pinned_trailing_column:
        logger.info(f"Pinned trailing column: {settings.pinned_trailing_column}")

    return settings
