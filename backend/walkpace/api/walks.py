"""
API routes for walk history and user settings.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from walkpace.api.schemas import (
    ClientConfigResponse,
    GpsOptionsResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    WalkResponse,
    WalkStatsResponse,
    settings_response,
)
from walkpace.services.estimator import WalkingEstimator
from walkpace.services.export import export_filename
from walkpace.services.speed_model import recent_walks


def get_estimator(request: Request) -> WalkingEstimator:
    """Estimator owned by the running application."""
    return request.app.state.estimator


router = APIRouter(prefix="/walks", tags=["walks"])


@router.get("", response_model=list[WalkResponse])
async def list_walks(
    limit: Optional[int] = Query(None, ge=1, description="Return only the most recent walks"),
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    List recorded walks, newest first.
    """
    history = estimator.history
    walks = recent_walks(history, limit if limit is not None else len(history))
    return [WalkResponse.from_record(w) for w in walks]


@router.get("/stats", response_model=WalkStatsResponse)
async def walk_stats(estimator: WalkingEstimator = Depends(get_estimator)):
    """Totals and recent average speed."""
    summary = estimator.summary()
    return WalkStatsResponse(
        total_walks=summary.total_walks,
        total_distance=summary.total_distance,
        average_speed=summary.average_speed,
    )


@router.get("/export")
async def export_walks(estimator: WalkingEstimator = Depends(get_estimator)):
    """
    Download the history as CSV.
    """
    content = estimator.export_csv()
    if content is None:
        raise HTTPException(status_code=404, detail="No data to export yet!")

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.delete("", response_model=WalkStatsResponse)
async def clear_walks(estimator: WalkingEstimator = Depends(get_estimator)):
    """
    Delete all recorded walks. This cannot be undone.
    """
    estimator.clear_history()
    summary = estimator.summary()
    return WalkStatsResponse(
        total_walks=summary.total_walks,
        total_distance=summary.total_distance,
        average_speed=summary.average_speed,
    )


# ============================================================================
# Settings Routes
# ============================================================================

settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.get("", response_model=SettingsResponse)
async def get_settings(estimator: WalkingEstimator = Depends(get_estimator)):
    """Current baseline and the resulting personalized speed."""
    return settings_response(estimator.settings, estimator.personalized_speed())


@settings_router.put("", response_model=SettingsResponse)
async def update_settings(
    request: SettingsUpdateRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Update the average speed and/or terrain factor.

    Changes are persisted immediately.
    """
    settings = estimator.update_settings(
        average_speed=request.average_speed,
        terrain_factor=request.terrain_factor,
    )
    return settings_response(settings, estimator.personalized_speed())


config_router = APIRouter(prefix="/config", tags=["config"])


@config_router.get("", response_model=ClientConfigResponse)
async def get_client_config(request: Request):
    """Map and geolocation options for the client."""
    config = request.app.state.config
    return ClientConfigResponse(
        center_lat=config.map.center_lat,
        center_lng=config.map.center_lng,
        zoom=config.map.zoom,
        gps=GpsOptionsResponse(
            enable_high_accuracy=config.gps.enable_high_accuracy,
            timeout_ms=config.gps.timeout_ms,
            maximum_age_ms=config.gps.maximum_age_ms,
            current_location_timeout_ms=config.gps.current_location_timeout_ms,
        ),
        directions_configured=config.directions_api_key is not None,
    )
