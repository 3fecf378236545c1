"""
Live tracking filter.

Consumes raw GPS fixes during a walk, drops coarse or implausible samples,
accumulates walked distance and keeps a smoothed instantaneous speed.
`on_position_sample` is a state transition over a TrackingSession and knows
nothing about how samples are delivered; `LiveTracker` wraps it in the
Idle/Tracking state machine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np

from walkpace.errors import TrackingStateError
from walkpace.models.tracking import (
    PositionSample,
    TrackerState,
    TrackingSession,
    TrackingUpdate,
)
from walkpace.models.walk import WalkRecord, is_plausible_walk
from walkpace.utils.geo import haversine_km


logger = logging.getLogger(__name__)

MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class TrackerConfig:
    """Thresholds for the tracking filter."""

    max_accuracy_m: float = 50.0
    min_movement_km: float = 0.001        # 1 m
    min_instant_speed_kmh: float = 0.5    # exclusive
    max_instant_speed_kmh: float = 15.0   # exclusive
    # When True, distance is only accumulated for samples whose instant speed
    # is plausible, keeping distance and speed buffer consistent.
    reject_implausible_distance: bool = False


DEFAULT_TRACKER_CONFIG = TrackerConfig()


def on_position_sample(
    session: TrackingSession,
    sample: PositionSample,
    route_distance_km: Optional[float] = None,
    config: TrackerConfig = DEFAULT_TRACKER_CONFIG,
) -> TrackingUpdate:
    """
    Apply one GPS fix to the session.

    Args:
        session: Session to update in place
        sample: The new fix
        route_distance_km: Planned route distance, if a route is known
        config: Filter thresholds

    Returns:
        TrackingUpdate with the values emitted for this sample
    """
    if sample.accuracy_m > config.max_accuracy_m:
        logger.debug(f"Low GPS accuracy ({sample.accuracy_m} m), skipping sample")
        return TrackingUpdate(
            accepted=False,
            total_distance_walked=session.total_distance_walked,
        )

    update = TrackingUpdate(
        accepted=True,
        total_distance_walked=session.total_distance_walked,
    )

    last = session.last_position
    if last is not None:
        distance = float(haversine_km(last.lat, last.lng, sample.lat, sample.lng))
        time_diff_hours = (sample.timestamp_ms - last.timestamp_ms) / MS_PER_HOUR

        if distance > config.min_movement_km and time_diff_hours > 0:
            instant_speed = distance / time_diff_hours
            plausible = (
                config.min_instant_speed_kmh
                < instant_speed
                < config.max_instant_speed_kmh
            )

            if plausible or not config.reject_implausible_distance:
                session.total_distance_walked += distance
                update.total_distance_walked = session.total_distance_walked

            if plausible:
                _record_speed(session, instant_speed, route_distance_km, update)
            else:
                logger.debug(f"Discarding implausible instant speed {instant_speed:.1f} km/h")

    session.last_position = sample
    return update


def _record_speed(
    session: TrackingSession,
    instant_speed: float,
    route_distance_km: Optional[float],
    update: TrackingUpdate,
) -> None:
    """Push a plausible instant speed and emit the derived observables."""
    session.speed_buffer.append(instant_speed)  # deque evicts the oldest
    smoothed = float(np.mean(session.speed_buffer))
    session.smoothed_speed = smoothed

    update.instant_speed = instant_speed
    update.smoothed_speed = smoothed

    if route_distance_km is not None and route_distance_km > 0:
        remaining = max(0.0, route_distance_km - session.total_distance_walked)
        update.remaining_distance = remaining
        update.remaining_time = (remaining / smoothed) * 60


def finalize(
    session: TrackingSession,
    now_ms: int,
    terrain_factor: float,
    route_label: str,
) -> Optional[WalkRecord]:
    """
    Turn a finished session into a walk record.

    Returns:
        WalkRecord if the walk is plausible, None otherwise
    """
    if session.last_position is None:
        return None

    duration_hours = (now_ms - session.start_time_ms) / MS_PER_HOUR
    distance = session.total_distance_walked
    if duration_hours <= 0:
        logger.info("Walk has no duration, not recording")
        return None

    avg_speed = distance / duration_hours
    if not is_plausible_walk(avg_speed, distance):
        logger.info(
            f"Walk not recorded: {distance:.3f} km at {avg_speed:.1f} km/h"
        )
        return None

    finished_at = datetime.fromtimestamp(now_ms / 1000)
    return WalkRecord(
        id=now_ms,
        date=finished_at.strftime("%Y-%m-%d"),
        time=finished_at.strftime("%H:%M:%S"),
        route=route_label,
        speed=avg_speed,
        distance=distance,
        duration=duration_hours * 60,
        terrain=terrain_factor,
    )


def shorten_address(address: str) -> str:
    """First comma-separated part of an address, truncated for display."""
    first = address.split(",")[0]
    if len(first) > 20:
        return first[:17] + "..."
    return first


def generate_route_description(
    start: Optional[str],
    end: Optional[str],
    walk_count: int,
) -> str:
    """Label for a saved walk: endpoint addresses, or a sequential fallback."""
    if start and end:
        return f"{shorten_address(start)} → {shorten_address(end)}"
    return f"Walk {walk_count + 1}"


class LiveTracker:
    """
    Idle/Tracking state machine around the tracking filter.

    Owns at most one TrackingSession at a time.
    """

    def __init__(self, config: TrackerConfig = DEFAULT_TRACKER_CONFIG):
        self.config = config
        self._session: Optional[TrackingSession] = None

    @property
    def state(self) -> TrackerState:
        if self._session is None:
            return TrackerState.IDLE
        return TrackerState.TRACKING

    @property
    def session(self) -> Optional[TrackingSession]:
        return self._session

    def start(self, now_ms: int) -> TrackingSession:
        """
        Begin a new walk with a fresh session.

        Raises:
            TrackingStateError: If a walk is already being tracked
        """
        if self._session is not None:
            raise TrackingStateError("Tracking is already active")
        self._session = TrackingSession(start_time_ms=now_ms)
        logger.info("Tracking started")
        return self._session

    def process(
        self,
        sample: PositionSample,
        route_distance_km: Optional[float] = None,
    ) -> TrackingUpdate:
        """
        Feed one sample to the active session.

        Samples arriving while idle are ignored and reported as not accepted.
        """
        if self._session is None:
            logger.debug("Ignoring position sample while idle")
            return TrackingUpdate(accepted=False, total_distance_walked=0.0)
        return on_position_sample(
            self._session, sample, route_distance_km, self.config
        )

    def stop(
        self,
        now_ms: int,
        terrain_factor: float,
        route_label: str,
    ) -> Optional[WalkRecord]:
        """
        End the walk and finalize its session.

        Returns:
            The finished walk record, or None if idle or the walk was implausible
        """
        session = self._session
        if session is None:
            return None
        self._session = None
        logger.info(
            f"Tracking stopped after {session.total_distance_walked:.3f} km"
        )
        return finalize(session, now_ms, terrain_factor, route_label)

    def abort(self) -> bool:
        """
        Discard the active session without recording a walk.

        Returns:
            True if a session was discarded
        """
        if self._session is None:
            return False
        self._session = None
        logger.info("Tracking aborted, session discarded")
        return True
