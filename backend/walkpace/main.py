"""
WalkPace - FastAPI Backend

Main application entry point and configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from walkpace.api.routes import router as route_router
from walkpace.api.schemas import ErrorResponse
from walkpace.api.tracking import router as tracking_router, trace_router
from walkpace.api.walks import (
    config_router,
    router as walks_router,
    settings_router,
)
from walkpace.config import AppConfig
from walkpace.errors import (
    DirectionsError,
    InvalidInputError,
    TrackingStateError,
    WalkPaceError,
)
from walkpace.services.estimator import WalkingEstimator, build_estimator


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


APP_NAME = "WalkPace"
APP_VERSION = "0.1.0"


def _error_status(error: WalkPaceError) -> int:
    if isinstance(error, InvalidInputError):
        return 400
    if isinstance(error, TrackingStateError):
        return 409
    if isinstance(error, DirectionsError):
        return 502
    return 400


async def walkpace_error_handler(request: Request, exc: WalkPaceError):
    """Categorized errors become {detail, code} responses."""
    return JSONResponse(
        status_code=_error_status(exc),
        content=ErrorResponse(detail=exc.message, code=exc.code).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting WalkPace Backend")
    logger.info(f"Data folder: {app.state.config.data_dir}")
    if app.state.config.directions_api_key is None:
        logger.info("No directions API key set; use POST /route/estimate for known routes")

    yield

    logger.info("Shutting down WalkPace Backend")


def create_app(
    config: Optional[AppConfig] = None,
    estimator: Optional[WalkingEstimator] = None,
) -> FastAPI:
    """Create and configure the FastAPI app."""
    if config is None:
        config = AppConfig.from_env()

    app = FastAPI(
        title=APP_NAME,
        description="""
    Personal walking-time estimator.

    ## Features
    - Personalized walking speed learned from past walks
    - Route time estimates compared with the directions provider
    - Live GPS tracking with noise filtering and speed smoothing
    - CSV export of the walk history

    ## Data Flow
    1. Adjust baseline via PUT /settings
    2. Plan a route via POST /route
    3. Track a walk via POST /tracking/start, /tracking/samples, /tracking/stop
    4. Review history via GET /walks
    """,
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.estimator = estimator or build_estimator(config)

    # CORS middleware (allow all origins for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WalkPaceError, walkpace_error_handler)

    # Include routers
    app.include_router(walks_router)
    app.include_router(settings_router)
    app.include_router(config_router)
    app.include_router(route_router)
    app.include_router(tracking_router)
    app.include_router(trace_router)

    @app.get("/")
    async def root():
        """Root endpoint - basic health check."""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "status": "running",
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        estimator = request.app.state.estimator
        return {
            "status": "healthy",
            "data_folder": str(estimator.store.data_folder),
            "walk_count": len(estimator.history),
            "tracking": estimator.tracking_state.value,
        }

    return app


app = create_app()
