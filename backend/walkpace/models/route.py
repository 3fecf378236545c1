"""
Planned route model.

The core only depends on the directions provider through the narrow
distance/duration shape below.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PlannedRoute:
    """A route returned by the directions provider (first leg of first route)."""

    distance_km: float
    duration_minutes: float
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    distance_text: Optional[str] = None


@dataclass(frozen=True)
class RouteEstimate:
    """Personalized time estimate compared against the provider's estimate."""

    distance_km: float
    personal_speed: float        # km/h
    personal_minutes: float
    provider_minutes: float
    difference_minutes: float    # provider - personal; positive means faster
    percent_difference: float
    terrain: str

    @property
    def faster(self) -> bool:
        return self.difference_minutes > 0
