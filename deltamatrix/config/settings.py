"""Application configuration settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Motion Delta Matrix"
    debug: bool = False
    log_json: bool = True

    # Muscle grouping
    min_grouping_score: float = 0.5  # Score a muscle must exceed to be offered as a grouping
    path_separator: str = " > "
    no_grouping_label: str = "No Primary Muscle"

    # Delta rule resolution
    max_inherit_depth: int = 20

    # Admin table API (persistence collaborator)
    admin_api_base_url: str = "http://localhost:3001/api"
    admin_api_timeout: float = 30.0  # seconds

    class Config:
        env_prefix = "DELTAMATRIX_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
