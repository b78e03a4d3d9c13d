"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and host settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CGA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "CGA-lite"
    app_version: str = "0.3.0"
    debug: bool = False
    log_level: str = "INFO"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Geometry validation
    duplicate_vertex_epsilon: float = 0.01
    parallel_epsilon: float = 1e-10
    meter_min_x: float = -1_000_000
    meter_max_x: float = 10_000_000
    meter_min_y: float = -1_000_000
    meter_max_y: float = 20_000_000
    utm_small_extent_threshold: float = 1000
    min_polygon_area: float = 1e-9

    # CRS used for the interpreter's own geometry check when none is passed
    default_validation_epsg: int = 3857
    default_validation_crs_name: str = "Local Test CRS"

    # Execution limits
    execution_timeout_seconds: float = 10.0
    max_rules_per_program: int = 200
    max_vertices_per_polygon: int = 5000


@lru_cache
def get_settings() -> Settings:
    return Settings()
