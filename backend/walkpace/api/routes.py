"""
API routes for planned routes and their personalized estimates.
"""

from fastapi import APIRouter, Depends, HTTPException

from walkpace.api.schemas import (
    RouteEstimateRequest,
    RouteEstimateResponse,
    RouteRequest,
)
from walkpace.api.walks import get_estimator
from walkpace.models.route import PlannedRoute
from walkpace.services.estimator import WalkingEstimator


router = APIRouter(prefix="/route", tags=["route"])


@router.post("", response_model=RouteEstimateResponse)
async def calculate_route(
    request: RouteRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Calculate a walking route between two addresses.

    The provider's route becomes the target for live tracking.
    """
    estimate = await estimator.calculate_route(request.start, request.end)
    return RouteEstimateResponse.from_estimate(estimate, estimator.route.distance_text)


@router.post("/estimate", response_model=RouteEstimateResponse)
async def estimate_route(
    request: RouteEstimateRequest,
    estimator: WalkingEstimator = Depends(get_estimator),
):
    """
    Estimate a route whose distance and provider duration are already known.
    """
    route = PlannedRoute(
        distance_km=request.distance_km,
        duration_minutes=request.duration_minutes,
        start_address=request.start,
        end_address=request.end,
    )
    estimate = estimator.set_route(route)
    return RouteEstimateResponse.from_estimate(estimate)


@router.get("", response_model=RouteEstimateResponse)
async def get_route_estimate(estimator: WalkingEstimator = Depends(get_estimator)):
    """
    Re-estimate the current route with the current settings and history.
    """
    estimate = estimator.current_estimate()
    if estimate is None:
        raise HTTPException(status_code=404, detail="No route calculated")
    return RouteEstimateResponse.from_estimate(estimate, estimator.route.distance_text)
