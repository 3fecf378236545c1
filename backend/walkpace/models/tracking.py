"""
Live tracking data model.

A TrackingSession only exists while a walk is in progress. The tracking filter
mutates it once per accepted position sample and discards it on stop.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


SPEED_BUFFER_SIZE = 10


class TrackerState(Enum):
    """Tracking state machine states."""

    IDLE = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class PositionSample:
    """A single raw GPS fix."""

    lat: float
    lng: float
    timestamp_ms: int
    accuracy_m: float


@dataclass
class TrackingSession:
    """State of an in-progress walk."""

    start_time_ms: int
    last_position: Optional[PositionSample] = None
    speed_buffer: deque = field(
        default_factory=lambda: deque(maxlen=SPEED_BUFFER_SIZE)
    )
    total_distance_walked: float = 0.0  # km
    smoothed_speed: Optional[float] = None  # km/h, last emitted value


@dataclass
class TrackingUpdate:
    """
    Observables emitted after processing one sample.

    Fields are None when the corresponding value was not emitted for this
    sample (e.g. the instant speed was rejected, or no route is planned).
    """

    accepted: bool
    total_distance_walked: float
    instant_speed: Optional[float] = None
    smoothed_speed: Optional[float] = None
    remaining_distance: Optional[float] = None
    remaining_time: Optional[float] = None  # minutes
