"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
All thresholds are exposed here so callers can inject their own Settings.
"""

import logging
import sys
from typing import Optional, TYPE_CHECKING

from pydantic import Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from trailtrek.features.completion.schemas import CompletionCriteria


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./trailtrek.db",
        description="Database URL for the SQL-backed cache store"
    )

    # === Completion criteria ===
    min_distance: float = Field(default=500.0, ge=0, description="Meters")
    min_duration: float = Field(default=300.0, ge=0, description="Seconds")
    min_points: int = Field(default=10, ge=0)
    nft_min_distance: float = Field(default=1000.0, ge=0)
    nft_min_duration: float = Field(default=600.0, ge=0)

    # === Recording ===
    min_distance_threshold: float = Field(
        default=5.0, ge=0,
        description="Samples closer than this to the last accepted one are dropped"
    )
    smoothing_enabled: bool = Field(default=True)
    smoothing_max_speed: float = Field(default=20.0, gt=0, description="m/s")

    # === GPS ===
    tracking_interval: float = Field(default=3.0, gt=0, description="Seconds")
    gps_timeout: float = Field(default=10.0, gt=0)
    gps_maximum_age: float = Field(default=1.0, ge=0)
    enable_high_accuracy: bool = Field(default=True)

    # === Cache ===
    cache_ttl: int = Field(default=300, ge=0, description="User data TTL, seconds")

    # === Ledger ===
    metadata_label: int = Field(default=674)
    checkpoint_limit: int = Field(default=20, gt=0)
    blockfrost_api_url: str = Field(
        default="https://cardano-testnet.blockfrost.io/api/v0",
        description="Block explorer API endpoint"
    )
    blockfrost_project_id: Optional[str] = Field(default=None)
    script_address: Optional[str] = Field(default=None)
    nft_image_base_url: str = Field(default="https://api.vintrek.com/nft-image")

    @field_validator('blockfrost_api_url', 'nft_image_base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs."""
        return v.rstrip("/")

    def completion_criteria(self) -> "CompletionCriteria":
        """Completion thresholds implied by these settings."""
        from trailtrek.features.completion.schemas import CompletionCriteria

        return CompletionCriteria(
            minimum_distance=self.min_distance,
            minimum_duration=self.min_duration,
            minimum_points=self.min_points,
            nft_minimum_distance=self.nft_min_distance,
            nft_minimum_duration=self.nft_min_duration,
        )

    model_config = ConfigDict(
        env_prefix="TRAILTREK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for applications embedding trailtrek."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )
