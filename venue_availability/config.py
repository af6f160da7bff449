"""Engine configuration settings.

``EngineSettings`` uses ``pydantic-settings`` to read its values from
``VENUE_``-prefixed environment variables (or a local ``.env`` file).
Engine functions take these values as explicit arguments; only the HTTP
layer reads the settings object.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEZONE = "Asia/Kuala_Lumpur"
DEFAULT_OPERATING_HOURS = "08:00 - 22:00"
DEFAULT_RESERVATION_DURATION_MINUTES = 60


class EngineSettings(BaseSettings):
    """Recognized engine options."""

    model_config = SettingsConfigDict(env_prefix="VENUE_", env_file=".env", extra="ignore")

    default_reservation_duration_minutes: int = Field(
        default=DEFAULT_RESERVATION_DURATION_MINUTES,
        gt=0,
        description="Duration applied to reservations that carry neither an end nor a duration.",
    )
    grid_hour_step: int = Field(
        default=1,
        ge=1,
        le=24,
        description="Stride, in hours, between hourly grid cells.",
    )
    adjacency_is_conflict: bool = Field(
        default=False,
        description="Treat back-to-back bookings (end == start) as conflicting.",
    )
    default_timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA zone used for venues that do not declare one.",
    )
    default_operating_hours: str = Field(
        default=DEFAULT_OPERATING_HOURS,
        description="Operating hours assumed by the grid when a venue declares none.",
    )
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
