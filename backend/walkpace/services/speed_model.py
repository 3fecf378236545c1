"""
Personalized walking speed model.

Blends a recency-weighted average of past walks with the user's manual
baseline, then applies the terrain factor. All functions are pure.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from walkpace.models.route import PlannedRoute, RouteEstimate
from walkpace.models.walk import DEFAULT_AVERAGE_SPEED, WalkRecord


MIN_HISTORY_FOR_LEARNING = 3
RECENCY_WEIGHT_BASE = 1.1
LEARNED_WEIGHT = 0.8
MIN_SPEED_KMH = 1.0
RECENT_WALK_COUNT = 5
HISTORY_DISPLAY_LIMIT = 15

TERRAIN_DESCRIPTIONS = {
    1.0: "flat",
    0.8: "hilly",
    0.6: "very hilly",
    1.1: "downhill",
}


@dataclass(frozen=True)
class HistorySummary:
    """Aggregate statistics over the walk history."""

    total_walks: int
    total_distance: float  # km
    average_speed: float   # km/h, recent average


def estimate_speed(
    history: Sequence[WalkRecord],
    base_speed: float,
    terrain_factor: float,
) -> float:
    """
    Estimate the user's walking speed in km/h.

    With fewer than three walks on record the manual baseline is used as is.
    Otherwise every walk contributes with weight 1.1**i (i=0 is the oldest),
    and the learned speed is blended 80/20 with the baseline.

    Args:
        history: Walks, oldest first
        base_speed: Manual baseline speed (km/h, > 0)
        terrain_factor: Terrain multiplier (> 0)

    Returns:
        Speed in km/h, never below 1.0
    """
    if len(history) < MIN_HISTORY_FOR_LEARNING:
        return max(MIN_SPEED_KMH, base_speed * terrain_factor)

    speeds = np.array([walk.speed for walk in history], dtype=np.float64)
    # Exponents relative to the newest entry: same weight ratios, no overflow
    exponents = np.arange(len(speeds)) - (len(speeds) - 1)
    weights = np.power(RECENCY_WEIGHT_BASE, exponents)
    learned_speed = float(np.average(speeds, weights=weights))

    blended = LEARNED_WEIGHT * learned_speed + (1.0 - LEARNED_WEIGHT) * base_speed
    return max(MIN_SPEED_KMH, blended * terrain_factor)


def recent_average_speed(history: Sequence[WalkRecord]) -> float:
    """Mean speed over the last five walks (5.5 km/h with no history)."""
    if not history:
        return DEFAULT_AVERAGE_SPEED
    recent = history[-RECENT_WALK_COUNT:]
    return float(np.mean([walk.speed for walk in recent]))


def projected_time(distance_km: float, speed_kmh: float) -> float:
    """
    Time to cover a distance at a given speed.

    Returns:
        Minutes

    Raises:
        ValueError: If speed is not positive
    """
    if speed_kmh <= 0:
        raise ValueError(f"Speed must be positive, got {speed_kmh}")
    return (distance_km / speed_kmh) * 60


def terrain_description(terrain_factor: float) -> str:
    return TERRAIN_DESCRIPTIONS.get(terrain_factor, "custom")


def compare_route(
    route: PlannedRoute,
    personal_speed: float,
    terrain_factor: float,
) -> RouteEstimate:
    """Compare the personalized time for a route with the provider's estimate."""
    personal_minutes = projected_time(route.distance_km, personal_speed)
    provider_minutes = route.duration_minutes
    difference = provider_minutes - personal_minutes

    if provider_minutes > 0:
        percent = abs(difference) / provider_minutes * 100
    else:
        percent = 0.0

    return RouteEstimate(
        distance_km=route.distance_km,
        personal_speed=personal_speed,
        personal_minutes=personal_minutes,
        provider_minutes=provider_minutes,
        difference_minutes=difference,
        percent_difference=percent,
        terrain=terrain_description(terrain_factor),
    )


def recent_walks(
    history: Sequence[WalkRecord],
    limit: int = HISTORY_DISPLAY_LIMIT,
) -> list[WalkRecord]:
    """Most recent walks, newest first."""
    if limit <= 0:
        return []
    return list(reversed(history[-limit:]))


def summarize_history(history: Sequence[WalkRecord]) -> HistorySummary:
    return HistorySummary(
        total_walks=len(history),
        total_distance=float(sum(walk.distance for walk in history)),
        average_speed=recent_average_speed(history),
    )
