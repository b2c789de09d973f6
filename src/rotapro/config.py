"""Application configuration and settings management."""

from typing import Annotated, Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROTAPRO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "RotaPro Route Optimization API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level for the service.")

    osrm_base_url: str = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_walking_base_url: Optional[str] = Field(
        default=None,
        description="Optional OSRM instance serving the walking profile. Falls back to osrm_base_url.",
    )
    osrm_driving_profile: str = Field(default="driving")
    osrm_walking_profile: str = Field(default="foot")
    osrm_timeout_seconds: float = Field(default=30.0, gt=0.0)
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    osrm_max_coordinates_per_request: int = Field(
        default=100,
        ge=2,
        description="Upper bound of coordinates sent in a single OSRM table request.",
    )
    provider_max_parallel_requests: int = Field(default=4, ge=1)

    nominatim_base_url: str = Field(default="https://nominatim.openstreetmap.org")
    nominatim_user_agent: str = Field(default="rotapro-route-optimizer")
    nominatim_country_codes: Optional[str] = Field(
        default=None,
        description="Comma-separated ISO country codes used to narrow geocoding (e.g. 'br').",
    )
    nominatim_timeout_seconds: float = Field(default=10.0, gt=0.0)
    nominatim_max_retries: int = Field(default=2, ge=0)
    nominatim_backoff_seconds: float = Field(default=1.0, ge=0.0)
    geocode_max_parallel: int = Field(default=2, ge=1)

    sequencing_metric: Literal["duration", "distance"] = Field(
        default="duration",
        description="Matrix component minimised by the stop sequencer.",
    )
    two_opt_max_iterations: int = Field(
        default=1000,
        ge=0,
        description="Maximum number of accepted 2-opt moves before the search stops.",
    )

    # NoDecode hands the raw env string to the validator below.
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
