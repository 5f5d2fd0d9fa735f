"""Configuration management for SheetNest."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SHEETNEST_",
        extra="ignore",
    )

    # Paths
    output_dir: Path = Field(default=Path("output"), description="Output directory for generated drawings")

    # Nesting engine (all lengths in inches)
    spacing: float = Field(default=0.1, ge=0, description="Minimum gap between parts")
    margin: float = Field(default=0.2, ge=0, description="Unusable border on every sheet edge")
    allow_rotation: bool = Field(default=True, description="Allow parts to be rotated")
    rotation_angles: List[int] = Field(
        default_factory=lambda: [0, 90, 180, 270],
        description="Rotations tried, in order, when rotation is allowed",
    )
    default_unit: str = Field(
        default="auto",
        description="Unit assumed for part dimensions without a unit tag (inch, meter, millimeter, point, auto)",
    )

    # Sheet selection
    area_buffer: float = Field(default=0.5, ge=0, description="Fractional slack added to the required part area")

    # Logging
    log_level: str = Field(default="INFO", description="Log level for the CLI")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure(settings: Optional[Settings]) -> None:
    """Override global settings (None resets to environment defaults)."""
    global _settings
    _settings = settings
