"""
Walking estimator - the application state object.

Ties together the walk store, speed model, live tracker and directions
client. One instance is created per application and handed to the request
handlers; there is no module-level instance.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from walkpace.config import AppConfig
from walkpace.errors import GeolocationError
from walkpace.models.route import PlannedRoute, RouteEstimate
from walkpace.models.tracking import PositionSample, TrackerState, TrackingSession, TrackingUpdate
from walkpace.models.walk import UserSettings, WalkRecord
from walkpace.services import speed_model
from walkpace.services.directions import DirectionsClient
from walkpace.services.export import walks_to_csv
from walkpace.services.storage import LocalStore, WalkStore
from walkpace.services.trace_parser import ReplayResult, parse_trace_file, replay_trace
from walkpace.services.tracker import (
    DEFAULT_TRACKER_CONFIG,
    LiveTracker,
    TrackerConfig,
    generate_route_description,
)


logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class WalkingEstimator:
    """Personal walking-time estimator state."""

    def __init__(
        self,
        store: WalkStore,
        directions: Optional[DirectionsClient] = None,
        tracker_config: TrackerConfig = DEFAULT_TRACKER_CONFIG,
        clock: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._directions = directions
        self._tracker = LiveTracker(tracker_config)
        self._clock = clock
        self._route: Optional[PlannedRoute] = None

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def store(self) -> WalkStore:
        return self._store

    @property
    def history(self) -> tuple[WalkRecord, ...]:
        return self._store.history

    @property
    def settings(self) -> UserSettings:
        return self._store.settings

    @property
    def route(self) -> Optional[PlannedRoute]:
        return self._route

    @property
    def tracking_state(self) -> TrackerState:
        return self._tracker.state

    @property
    def session(self) -> Optional[TrackingSession]:
        return self._tracker.session

    # ------------------------------------------------------------------
    # Speed model
    # ------------------------------------------------------------------

    def personalized_speed(self) -> float:
        settings = self.settings
        return speed_model.estimate_speed(
            self.history, settings.average_speed, settings.terrain_factor
        )

    def update_settings(
        self,
        average_speed: Optional[float] = None,
        terrain_factor: Optional[float] = None,
    ) -> UserSettings:
        return self._store.update_settings(average_speed, terrain_factor)

    def summary(self) -> speed_model.HistorySummary:
        return speed_model.summarize_history(self.history)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    async def calculate_route(self, start: str, end: str) -> RouteEstimate:
        """
        Ask the directions provider for a route and estimate it.

        Raises:
            InvalidInputError: If an address is missing
            DirectionsError: If no provider is configured or the call fails
        """
        if self._directions is None:
            directions = DirectionsClient(api_key=None)
        else:
            directions = self._directions
        route = await directions.route(start, end)
        return self.set_route(route)

    def set_route(self, route: PlannedRoute) -> RouteEstimate:
        """Make route the current target and estimate it."""
        self._route = route
        logger.info(f"Route set: {route.distance_km:.2f} km")
        return self.estimate_route(route)

    def estimate_route(self, route: PlannedRoute) -> RouteEstimate:
        return speed_model.compare_route(
            route, self.personalized_speed(), self.settings.terrain_factor
        )

    def current_estimate(self) -> Optional[RouteEstimate]:
        """Estimate for the current route under the current settings."""
        if self._route is None:
            return None
        return self.estimate_route(self._route)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def start_tracking(self) -> TrackingSession:
        return self._tracker.start(self._clock())

    def ingest_sample(self, sample: PositionSample) -> TrackingUpdate:
        route_distance = self._route.distance_km if self._route else None
        return self._tracker.process(sample, route_distance)

    def stop_tracking(self) -> Optional[WalkRecord]:
        """
        Stop tracking and save the walk if it is plausible.

        After a walk is saved the baseline speed is reset to the recent
        average so the next estimate starts from the learned pace.
        """
        label = self._route_label()
        walk = self._tracker.stop(
            self._clock(), self.settings.terrain_factor, label
        )
        if walk is None:
            return None

        self._store.append_walk(walk)
        recent = speed_model.recent_average_speed(self.history)
        self._store.update_settings(average_speed=round(recent, 1))
        return walk

    def fail_tracking(self, error_code: Optional[int]) -> GeolocationError:
        """
        Handle a geolocation failure reported by the client.

        Tracking is aborted and the session discarded.
        """
        error = GeolocationError(error_code)
        logger.warning(error.message)
        self._tracker.abort()
        return error

    def _route_label(self) -> str:
        start = self._route.start_address if self._route else None
        end = self._route.end_address if self._route else None
        return generate_route_description(start, end, len(self.history))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def clear_history(self) -> None:
        self._store.clear_history()

    def export_csv(self) -> Optional[str]:
        """CSV text of the history, or None when there is nothing to export."""
        if not self.history:
            return None
        return walks_to_csv(self.history)

    def replay_trace(self, filepath: Path) -> ReplayResult:
        """
        Replay a recorded trace without saving anything.

        Raises:
            ValueError: If the trace cannot be parsed
        """
        samples = parse_trace_file(filepath)
        route_distance = self._route.distance_km if self._route else None
        return replay_trace(
            samples,
            terrain_factor=self.settings.terrain_factor,
            route_label=self._route_label(),
            route_distance_km=route_distance,
            config=self._tracker.config,
        )


def build_estimator(config: AppConfig) -> WalkingEstimator:
    """Create the estimator state object for a configuration."""
    store = WalkStore(LocalStore(config.data_dir))
    directions = DirectionsClient(
        api_key=config.directions_api_key,
        base_url=config.directions_url,
        timeout=config.directions_timeout,
    )
    return WalkingEstimator(store, directions)
