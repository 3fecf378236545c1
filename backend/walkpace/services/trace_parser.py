"""
Recorded GPS trace adapter.

Parses a CSV of position fixes into PositionSamples and replays them through
the tracking filter offline, producing the same walk record a live session
would have produced.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from walkpace.models.tracking import PositionSample
from walkpace.models.walk import WalkRecord
from walkpace.services.tracker import DEFAULT_TRACKER_CONFIG, LiveTracker, TrackerConfig
from walkpace.utils.geo import segment_distances_km


logger = logging.getLogger(__name__)


# Column name variants seen in phone/app exports
COLUMN_MAPPINGS = {
    "time_ms": ["timestamp_ms", "time_ms", "geoTime", "TimestampMs"],
    "time": ["Time", "time", "TIME", "Timestamp", "timestamp", "GPS Time", "gps_time"],
    "latitude": ["Latitude", "latitude", "LATITUDE", "Lat", "lat", "LAT"],
    "longitude": ["Longitude", "longitude", "LONGITUDE", "Lon", "lon", "Lng", "lng", "Long", "long"],
    "accuracy": ["Accuracy", "accuracy", "horizontalAccuracy", "GPS_Accuracy", "gps_accuracy", "accuracy_m"],
}

# Numeric epochs above this are milliseconds, below are seconds
_MS_EPOCH_THRESHOLD = 1.0e11


@dataclass
class ReplayResult:
    """Outcome of replaying a trace through the tracking filter."""

    sample_count: int
    accepted_count: int
    dropped_count: int
    raw_distance_km: float          # straight sum over all fixes, unfiltered
    total_distance_walked: float    # filtered distance
    smoothed_speed: Optional[float]
    walk: Optional[WalkRecord]


class TraceParser:
    """Parser for GPS trace CSV files."""

    def parse_file(self, filepath: Path) -> list[PositionSample]:
        """
        Read a trace CSV.

        Raises:
            ValueError: If time or position columns are missing
        """
        df = pd.read_csv(filepath)
        df.columns = df.columns.str.strip()
        return self.parse_dataframe(df)

    def parse_dataframe(self, df: pd.DataFrame) -> list[PositionSample]:
        col_map = self._map_columns(df.columns.tolist())
        if col_map["latitude"] is None or col_map["longitude"] is None:
            raise ValueError("No latitude/longitude columns found in trace")

        timestamps = self._parse_time_column(df, col_map)
        lat = pd.to_numeric(df[col_map["latitude"]], errors="coerce").values.astype(np.float64)
        lng = pd.to_numeric(df[col_map["longitude"]], errors="coerce").values.astype(np.float64)

        if col_map["accuracy"] is not None:
            accuracy = pd.to_numeric(df[col_map["accuracy"]], errors="coerce").values.astype(np.float64)
        else:
            accuracy = np.zeros(len(df), dtype=np.float64)

        valid = ~(np.isnan(lat) | np.isnan(lng) | np.isnan(timestamps))
        skipped = int(np.count_nonzero(~valid))
        if skipped:
            logger.warning(f"Skipped {skipped} trace rows with missing time or position")

        # Unknown accuracy is treated as good enough
        accuracy = np.where(np.isnan(accuracy), 0.0, accuracy)

        return [
            PositionSample(
                lat=float(lat[i]),
                lng=float(lng[i]),
                timestamp_ms=int(timestamps[i]),
                accuracy_m=float(accuracy[i]),
            )
            for i in np.flatnonzero(valid)
        ]

    def _map_columns(self, columns: list[str]) -> dict[str, Optional[str]]:
        col_map: dict[str, Optional[str]] = {}
        for std_name, variants in COLUMN_MAPPINGS.items():
            col_map[std_name] = None
            for variant in variants:
                if variant in columns:
                    col_map[std_name] = variant
                    break
        return col_map

    def _parse_time_column(
        self,
        df: pd.DataFrame,
        col_map: dict[str, Optional[str]],
    ) -> NDArray[np.float64]:
        """Timestamps as epoch milliseconds (NaN where unparseable)."""
        if col_map["time_ms"] is not None:
            return pd.to_numeric(df[col_map["time_ms"]], errors="coerce").values.astype(np.float64)

        time_col = col_map["time"]
        if time_col is None:
            raise ValueError("No time column found in trace")

        numeric = pd.to_numeric(df[time_col], errors="coerce")
        if numeric.notna().any():
            values = numeric.values.astype(np.float64)
            if np.nanmax(values) > _MS_EPOCH_THRESHOLD:
                return values
            return values * 1000.0

        # ISO-like datetime strings
        parsed = pd.to_datetime(df[time_col], errors="coerce", utc=True)
        ms = (parsed - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)
        return ms.astype("float64").values


def parse_trace_file(filepath: Path) -> list[PositionSample]:
    return TraceParser().parse_file(filepath)


def replay_trace(
    samples: list[PositionSample],
    terrain_factor: float,
    route_label: str,
    route_distance_km: Optional[float] = None,
    config: TrackerConfig = DEFAULT_TRACKER_CONFIG,
) -> ReplayResult:
    """
    Run samples through a fresh tracking session.

    The session starts at the first sample's timestamp and stops at the last.
    """
    if not samples:
        return ReplayResult(
            sample_count=0,
            accepted_count=0,
            dropped_count=0,
            raw_distance_km=0.0,
            total_distance_walked=0.0,
            smoothed_speed=None,
            walk=None,
        )

    ordered = sorted(samples, key=lambda s: s.timestamp_ms)
    tracker = LiveTracker(config)
    session = tracker.start(ordered[0].timestamp_ms)

    accepted = 0
    for sample in ordered:
        update = tracker.process(sample, route_distance_km)
        if update.accepted:
            accepted += 1

    total = session.total_distance_walked
    smoothed = session.smoothed_speed
    walk = tracker.stop(ordered[-1].timestamp_ms, terrain_factor, route_label)

    raw = segment_distances_km(
        np.array([s.lat for s in ordered]),
        np.array([s.lng for s in ordered]),
    )

    return ReplayResult(
        sample_count=len(ordered),
        accepted_count=accepted,
        dropped_count=len(ordered) - accepted,
        raw_distance_km=float(raw.sum()),
        total_distance_walked=total,
        smoothed_speed=smoothed,
        walk=walk,
    )
