"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    fdc_api_key: str
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    candidate_limit: int = 50
    auto_map_min_confidence: float = 0.4
    low_confidence_threshold: float = 0.5
    low_confidence_share_limit: float = 0.3
    health_score_v2: bool = True
    unresolved_portion_grams: float | None = None
    alias_cache_ttl_seconds: int = 60
    alias_cache_max_entries: int = 100
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
