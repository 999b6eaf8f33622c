"""
config.py — pydantic-settings Settings class.

All environment variables for the Eventwow discovery service are declared here.
Both the API and the shared helpers import `settings` from this module.

Usage:
    from eventwow_shared.config import settings
    print(settings.supabase_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: str = Field(default="")
    supabase_service_key: str = Field(default="")
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    store_batch_size: int = Field(default=200, ge=1)
    max_candidates: int = Field(default=2000, ge=1)

    # -------------------------------------------------------------------------
    # Public site / storage
    # -------------------------------------------------------------------------
    public_site_url: str = Field(default="https://eventwow.co.uk")
    site_name: str = Field(default="Eventwow")
    image_bucket: str = Field(default="supplier-gallery")

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173")
    default_page_size: int = Field(default=24, ge=1)
    max_page_size: int = Field(default=60, ge=1)
    max_page: int = Field(default=2000, ge=1)

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------
    baseline_cache_ttl_seconds: float = Field(default=180.0, ge=0)
    eligibility_disabled_checks: list[str] = Field(default_factory=list)

    # Ranking constants. These are tunable defaults, validated against
    # product-chosen examples rather than measured.
    ranking_acceptance_prior_strength: float = Field(default=5.0, gt=0)
    ranking_response_good_minutes: float = Field(default=30.0, gt=0)
    ranking_response_ceiling_minutes: float = Field(default=2880.0, gt=0)
    ranking_activity_half_life_days: float = Field(default=14.0, gt=0)
    ranking_volume_saturation_sent: int = Field(default=20, ge=1)
    ranking_weight_acceptance: float = Field(default=0.4, ge=0)
    ranking_weight_response: float = Field(default=0.2, ge=0)
    ranking_weight_activity: float = Field(default=0.2, ge=0)
    ranking_weight_volume: float = Field(default=0.2, ge=0)
    ranking_location_weight: float = Field(default=0.25, ge=0)
    ranking_match_weight: float = Field(default=0.6, ge=0)
    ranking_quality_weight: float = Field(default=0.4, ge=0)
    ranking_verified_boost: float = Field(default=0.05, ge=0)
    ranking_plan_boosts: dict[str, float] = Field(
        default_factory=lambda: {"free": 0.0, "pro": 0.03}
    )
    ranking_top_match_threshold: float = Field(default=0.80)
    ranking_strong_match_threshold: float = Field(default=0.60)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @field_validator("supabase_url", "public_site_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton: import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
