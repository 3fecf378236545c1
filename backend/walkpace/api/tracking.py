"""
API routes for live walk tracking and offline trace replay.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from walkpace.api.schemas import (
    LocationErrorRequest,
    LocationErrorResponse,
    PositionSampleRequest,
    StopTrackingResponse,
    TraceReplayRequest,
    TraceReplayResponse,
    TrackingStatusResponse,
    TrackingUpdateResponse,
    WalkResponse,
    settings_response,
)
from walkpace.api.walks import get_estimator
from walkpace.models.tracking import PositionSample
from walkpace.services.estimator import WalkingEstimator


router = APIRouter(prefix="/tracking", tags=["tracking"])


def _status(estimator: WalkingEstimator) -> TrackingStatusResponse:
    return TrackingStatusResponse.from_session(
        estimator.tracking_state.value, estimator.session
    )


@router.get("", response_model=TrackingStatusResponse)
async def get_tracking_status(estimator: WalkingEstimator = Depends(get_estimator)):
    """Current tracking state and session values."""
    return _status(estimator)


@router.post("/start", response_model=TrackingStatusResponse)
async def start_tracking(estimator: WalkingEstimator = Depends(get_estimator)):
    """
    Start tracking a walk with a fresh session.
    """
    estimator.start_tracking()
    return _status(estimator)


@router.post("/samples", response_model=TrackingUpdateResponse)
async def submit_sample(
    request: PositionSampleRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Deliver one GPS fix to the active session.

    Coarse fixes (accuracy > 50 m) and fixes sent while idle are dropped
    without error.
    """
    sample = PositionSample(
        lat=request.lat,
        lng=request.lng,
        timestamp_ms=request.timestamp_ms,
        accuracy_m=request.accuracy_m,
    )
    update = estimator.ingest_sample(sample)
    return TrackingUpdateResponse.from_update(update)


@router.post("/stop", response_model=StopTrackingResponse)
async def stop_tracking(estimator: WalkingEstimator = Depends(get_estimator)):
    """
    Stop tracking. A plausible walk is saved to the history.
    """
    walk = estimator.stop_tracking()
    return StopTrackingResponse(
        saved=walk is not None,
        walk=WalkResponse.from_record(walk) if walk is not None else None,
        settings=settings_response(estimator.settings, estimator.personalized_speed()),
    )


@router.post("/error", response_model=LocationErrorResponse)
async def report_location_error(
    request: LocationErrorRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Report a geolocation failure. Tracking is stopped and nothing is saved.
    """
    error = estimator.fail_tracking(request.code)
    return LocationErrorResponse(
        state=estimator.tracking_state.value,
        code=error.code,
        message=error.message,
    )


# ============================================================================
# Trace Replay Routes
# ============================================================================

trace_router = APIRouter(prefix="/traces", tags=["traces"])


@trace_router.post("/replay", response_model=TraceReplayResponse)
async def replay_trace(
    request: TraceReplayRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Replay a recorded GPS trace through the tracking filter.

    Nothing is saved; the response shows the walk that would be recorded.
    """
    path = Path(request.path)
    if not path.is_file():
        raise HTTPException(status_code=400, detail=f"Trace file does not exist: {request.path}")

    try:
        result = estimator.replay_trace(path)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Could not parse trace: {e}")

    return TraceReplayResponse(
        sample_count=result.sample_count,
        accepted_count=result.accepted_count,
        dropped_count=result.dropped_count,
        raw_distance_km=result.raw_distance_km,
        total_distance_walked=result.total_distance_walked,
        smoothed_speed=result.smoothed_speed,
        walk=WalkResponse.from_record(result.walk) if result.walk is not None else None,
    )
