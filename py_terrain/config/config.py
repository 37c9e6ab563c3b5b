"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from ``PY_TERRAIN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_TERRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Generation
    default_resolution: int = Field(default=512, description="Default grid resolution (2^k)")
    max_resolution: int = Field(default=4096, description="Largest resolution accepted")
    default_splat_policy: str = Field(
        default="standard", description="Splat policy preset used when none is given"
    )


settings = Settings()
