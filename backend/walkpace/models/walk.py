"""
Walk history data model.

A WalkRecord is one completed, plausible walk. Records are created once by the
tracking filter and never mutated afterwards; the history is append-only.
"""

from dataclasses import asdict, dataclass
from typing import Any


# Defaults used when no settings have been saved yet
DEFAULT_AVERAGE_SPEED = 5.5  # km/h
DEFAULT_TERRAIN_FACTOR = 1.0

# Plausibility window for a recorded walk (exclusive bounds)
MIN_WALK_SPEED_KMH = 1.0
MAX_WALK_SPEED_KMH = 15.0
MIN_WALK_DISTANCE_KM = 0.1


@dataclass(frozen=True)
class WalkRecord:
    """One completed walk."""

    id: int            # creation timestamp, epoch ms
    date: str          # YYYY-MM-DD
    time: str          # HH:MM:SS
    route: str
    speed: float       # km/h
    distance: float    # km
    duration: float    # minutes
    terrain: float     # terrain multiplier in effect

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WalkRecord":
        """
        Build a record from its persisted JSON form.

        Raises:
            KeyError: If a required field is missing
            ValueError, TypeError: If a field cannot be converted
        """
        return cls(
            id=int(data["id"]),
            date=str(data["date"]),
            time=str(data["time"]),
            route=str(data["route"]),
            speed=float(data["speed"]),
            distance=float(data["distance"]),
            duration=float(data["duration"]),
            terrain=float(data.get("terrain", DEFAULT_TERRAIN_FACTOR)),
        )


def is_plausible_walk(speed_kmh: float, distance_km: float) -> bool:
    """Check the acceptance rule every recorded walk must satisfy."""
    return (
        MIN_WALK_SPEED_KMH < speed_kmh < MAX_WALK_SPEED_KMH
        and distance_km > MIN_WALK_DISTANCE_KM
    )


@dataclass
class UserSettings:
    """User's manually configured baseline."""

    average_speed: float = DEFAULT_AVERAGE_SPEED
    terrain_factor: float = DEFAULT_TERRAIN_FACTOR

    def to_dict(self) -> dict[str, float]:
        # Persisted keys keep the camelCase names of the stored blob
        return {
            "averageSpeed": self.average_speed,
            "terrainFactor": self.terrain_factor,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        """
        Merge saved keys over the defaults.

        Raises:
            ValueError, TypeError: If a saved value is not numeric
        """
        average_speed = float(data.get("averageSpeed", DEFAULT_AVERAGE_SPEED))
        terrain_factor = float(data.get("terrainFactor", DEFAULT_TERRAIN_FACTOR))
        if average_speed <= 0 or terrain_factor <= 0:
            raise ValueError("Settings values must be positive")
        return cls(average_speed=average_speed, terrain_factor=terrain_factor)
