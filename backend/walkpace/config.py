"""
Application configuration.

Values come from environment variables so the launch script (or a deployment)
can set them before the app is created.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DATA_DIR_ENV = "WALKPACE_DATA_DIR"
DIRECTIONS_API_KEY_ENV = "WALKPACE_DIRECTIONS_API_KEY"
DIRECTIONS_URL_ENV = "WALKPACE_DIRECTIONS_URL"
DIRECTIONS_TIMEOUT_ENV = "WALKPACE_DIRECTIONS_TIMEOUT"

DEFAULT_DATA_DIR = Path("./data")
DEFAULT_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
DEFAULT_DIRECTIONS_TIMEOUT = 10.0  # seconds


@dataclass(frozen=True)
class GpsOptions:
    """Geolocation options handed to the client that delivers samples."""

    enable_high_accuracy: bool = True
    timeout_ms: int = 15000
    maximum_age_ms: int = 2000
    current_location_timeout_ms: int = 10000


@dataclass(frozen=True)
class MapSettings:
    """Initial map view for the client (Hsinchu, Taiwan)."""

    center_lat: float = 24.8138
    center_lng: float = 120.9675
    zoom: int = 13


@dataclass(frozen=True)
class AppConfig:
    """Runtime configuration for the WalkPace backend."""

    data_dir: Path = DEFAULT_DATA_DIR
    directions_api_key: Optional[str] = None
    directions_url: str = DEFAULT_DIRECTIONS_URL
    directions_timeout: float = DEFAULT_DIRECTIONS_TIMEOUT
    gps: GpsOptions = field(default_factory=GpsOptions)
    map: MapSettings = field(default_factory=MapSettings)

    @classmethod
    def from_env(cls) -> "AppConfig":
        timeout = os.getenv(DIRECTIONS_TIMEOUT_ENV)
        return cls(
            data_dir=Path(os.getenv(DATA_DIR_ENV, str(DEFAULT_DATA_DIR))),
            directions_api_key=os.getenv(DIRECTIONS_API_KEY_ENV) or None,
            directions_url=os.getenv(DIRECTIONS_URL_ENV, DEFAULT_DIRECTIONS_URL),
            directions_timeout=float(timeout) if timeout else DEFAULT_DIRECTIONS_TIMEOUT,
        )
