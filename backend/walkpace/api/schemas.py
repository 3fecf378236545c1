"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from walkpace.models.route import RouteEstimate
from walkpace.models.tracking import TrackingSession, TrackingUpdate
from walkpace.models.walk import UserSettings, WalkRecord
from walkpace.services.speed_model import terrain_description


# ============================================================================
# Settings Schemas
# ============================================================================

class SettingsResponse(BaseModel):
    """User's manual baseline."""
    average_speed: float
    terrain_factor: float
    terrain: str
    personalized_speed: float


class SettingsUpdateRequest(BaseModel):
    """Change one or both settings."""
    average_speed: Optional[float] = Field(default=None, gt=0)
    terrain_factor: Optional[float] = Field(default=None, gt=0)


class GpsOptionsResponse(BaseModel):
    enable_high_accuracy: bool
    timeout_ms: int
    maximum_age_ms: int
    current_location_timeout_ms: int


class ClientConfigResponse(BaseModel):
    """Options the map client needs at startup."""
    center_lat: float
    center_lng: float
    zoom: int
    gps: GpsOptionsResponse
    directions_configured: bool


# ============================================================================
# Walk Schemas
# ============================================================================

class WalkResponse(BaseModel):
    """One recorded walk."""
    id: int
    date: str
    time: str
    route: str
    speed: float
    distance: float
    duration: float
    terrain: float

    @classmethod
    def from_record(cls, walk: WalkRecord) -> "WalkResponse":
        return cls(**walk.to_dict())


class WalkStatsResponse(BaseModel):
    """Summary statistics over the history."""
    total_walks: int
    total_distance: float
    average_speed: float


# ============================================================================
# Route Schemas
# ============================================================================

class RouteRequest(BaseModel):
    """Start and end addresses for the directions provider."""
    start: str = ""
    end: str = ""


class RouteEstimateRequest(BaseModel):
    """Route with a known distance/duration (no provider call)."""
    distance_km: float = Field(gt=0)
    duration_minutes: float = Field(ge=0)
    start: Optional[str] = None
    end: Optional[str] = None


class RouteEstimateResponse(BaseModel):
    """Personalized estimate against the provider's estimate."""
    distance_km: float
    distance_text: Optional[str] = None
    personal_speed: float
    personal_minutes: float
    provider_minutes: float
    difference_minutes: float
    percent_difference: float
    faster: bool
    terrain: str

    @classmethod
    def from_estimate(
        cls,
        estimate: RouteEstimate,
        distance_text: Optional[str] = None,
    ) -> "RouteEstimateResponse":
        return cls(
            distance_km=estimate.distance_km,
            distance_text=distance_text,
            personal_speed=estimate.personal_speed,
            personal_minutes=estimate.personal_minutes,
            provider_minutes=estimate.provider_minutes,
            difference_minutes=estimate.difference_minutes,
            percent_difference=estimate.percent_difference,
            faster=estimate.faster,
            terrain=estimate.terrain,
        )


# ============================================================================
# Tracking Schemas
# ============================================================================

class PositionSampleRequest(BaseModel):
    """One GPS fix delivered by the client."""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    timestamp_ms: int
    accuracy_m: float = Field(ge=0)


class TrackingUpdateResponse(BaseModel):
    """Observables emitted for one sample."""
    accepted: bool
    total_distance_walked: float
    instant_speed: Optional[float] = None
    smoothed_speed: Optional[float] = None
    remaining_distance: Optional[float] = None
    remaining_time: Optional[float] = None

    @classmethod
    def from_update(cls, update: TrackingUpdate) -> "TrackingUpdateResponse":
        return cls(
            accepted=update.accepted,
            total_distance_walked=update.total_distance_walked,
            instant_speed=update.instant_speed,
            smoothed_speed=update.smoothed_speed,
            remaining_distance=update.remaining_distance,
            remaining_time=update.remaining_time,
        )


class TrackingStatusResponse(BaseModel):
    """Current tracking state."""
    state: str
    start_time_ms: Optional[int] = None
    total_distance_walked: float = 0.0
    smoothed_speed: Optional[float] = None
    speed_buffer: list[float] = []

    @classmethod
    def from_session(
        cls,
        state: str,
        session: Optional[TrackingSession],
    ) -> "TrackingStatusResponse":
        if session is None:
            return cls(state=state)
        return cls(
            state=state,
            start_time_ms=session.start_time_ms,
            total_distance_walked=session.total_distance_walked,
            smoothed_speed=session.smoothed_speed,
            speed_buffer=list(session.speed_buffer),
        )


class StopTrackingResponse(BaseModel):
    """Result of stopping a walk."""
    saved: bool
    walk: Optional[WalkResponse] = None
    settings: SettingsResponse


class LocationErrorRequest(BaseModel):
    """Geolocation failure reported by the client (W3C error code)."""
    code: Optional[int] = None


class LocationErrorResponse(BaseModel):
    state: str
    code: str
    message: str


# ============================================================================
# Trace Schemas
# ============================================================================

class TraceReplayRequest(BaseModel):
    """Path to a recorded GPS trace CSV on the server."""
    path: str


class TraceReplayResponse(BaseModel):
    sample_count: int
    accepted_count: int
    dropped_count: int
    raw_distance_km: float
    total_distance_walked: float
    smoothed_speed: Optional[float] = None
    walk: Optional[WalkResponse] = None


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    code: Optional[str] = None


def settings_response(settings: UserSettings, personalized_speed: float) -> SettingsResponse:
    return SettingsResponse(
        average_speed=settings.average_speed,
        terrain_factor=settings.terrain_factor,
        terrain=terrain_description(settings.terrain_factor),
        personalized_speed=personalized_speed,
    )
