"""
WalkPace - Flask Backend

Alternative to FastAPI for environments where FastAPI isn't available.
Same API structure, different framework.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from flask import Flask, Response, current_app, jsonify, request

from walkpace.config import AppConfig
from walkpace.errors import (
    DirectionsError,
    TrackingStateError,
    WalkPaceError,
)
from walkpace.models.route import PlannedRoute, RouteEstimate
from walkpace.models.tracking import PositionSample, TrackingSession
from walkpace.services.estimator import WalkingEstimator, build_estimator
from walkpace.services.export import export_filename
from walkpace.services.speed_model import recent_walks, terrain_description


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _estimator() -> WalkingEstimator:
    return current_app.extensions["walkpace"]


def _settings_dict(estimator: WalkingEstimator) -> dict:
    settings = estimator.settings
    return {
        "average_speed": settings.average_speed,
        "terrain_factor": settings.terrain_factor,
        "terrain": terrain_description(settings.terrain_factor),
        "personalized_speed": estimator.personalized_speed(),
    }


def _estimate_dict(estimate: RouteEstimate, distance_text: Optional[str] = None) -> dict:
    return {
        "distance_km": estimate.distance_km,
        "distance_text": distance_text,
        "personal_speed": estimate.personal_speed,
        "personal_minutes": estimate.personal_minutes,
        "provider_minutes": estimate.provider_minutes,
        "difference_minutes": estimate.difference_minutes,
        "percent_difference": estimate.percent_difference,
        "faster": estimate.faster,
        "terrain": estimate.terrain,
    }


def _status_dict(estimator: WalkingEstimator) -> dict:
    session: Optional[TrackingSession] = estimator.session
    return {
        "state": estimator.tracking_state.value,
        "start_time_ms": session.start_time_ms if session else None,
        "total_distance_walked": session.total_distance_walked if session else 0.0,
        "smoothed_speed": session.smoothed_speed if session else None,
        "speed_buffer": list(session.speed_buffer) if session else [],
    }


def _stats_dict(estimator: WalkingEstimator) -> dict:
    summary = estimator.summary()
    return {
        "total_walks": summary.total_walks,
        "total_distance": summary.total_distance,
        "average_speed": summary.average_speed,
    }


def _float_arg(data: dict, key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    return float(value)


def register_routes(app: Flask) -> None:
    """Attach all endpoints to a Flask app."""

    # ========================================================================
    # Health Endpoints
    # ========================================================================

    @app.route("/")
    def root():
        """Root endpoint - basic health check."""
        return jsonify({
            "name": "WalkPace",
            "version": "0.1.0",
            "status": "running",
        })

    @app.route("/health")
    def health_check():
        """Health check endpoint."""
        estimator = _estimator()
        return jsonify({
            "status": "healthy",
            "data_folder": str(estimator.store.data_folder),
            "walk_count": len(estimator.history),
            "tracking": estimator.tracking_state.value,
        })

    # ========================================================================
    # Settings Endpoints
    # ========================================================================

    @app.route("/settings", methods=["GET"])
    def get_settings():
        """Current baseline and the resulting personalized speed."""
        return jsonify(_settings_dict(_estimator()))

    @app.route("/settings", methods=["PUT"])
    def update_settings():
        """Update the average speed and/or terrain factor."""
        data = request.get_json(silent=True) or {}
        try:
            average_speed = _float_arg(data, "average_speed")
            terrain_factor = _float_arg(data, "terrain_factor")
            estimator = _estimator()
            estimator.update_settings(average_speed, terrain_factor)
        except (TypeError, ValueError) as e:
            return jsonify({"detail": str(e)}), 400
        return jsonify(_settings_dict(estimator))

    @app.route("/config", methods=["GET"])
    def get_client_config():
        """Map and geolocation options for the client."""
        config: AppConfig = current_app.config["WALKPACE_CONFIG"]
        return jsonify({
            "center_lat": config.map.center_lat,
            "center_lng": config.map.center_lng,
            "zoom": config.map.zoom,
            "gps": {
                "enable_high_accuracy": config.gps.enable_high_accuracy,
                "timeout_ms": config.gps.timeout_ms,
                "maximum_age_ms": config.gps.maximum_age_ms,
                "current_location_timeout_ms": config.gps.current_location_timeout_ms,
            },
            "directions_configured": config.directions_api_key is not None,
        })

    # ========================================================================
    # Walk Endpoints
    # ========================================================================

    @app.route("/walks", methods=["GET"])
    def list_walks():
        """List recorded walks, newest first."""
        history = _estimator().history
        limit = request.args.get("limit", type=int)
        if limit is not None and limit < 1:
            return jsonify({"detail": "limit must be at least 1"}), 400
        walks = recent_walks(history, limit if limit is not None else len(history))
        return jsonify([w.to_dict() for w in walks])

    @app.route("/walks/stats", methods=["GET"])
    def walk_stats():
        return jsonify(_stats_dict(_estimator()))

    @app.route("/walks/export", methods=["GET"])
    def export_walks():
        """Download the history as CSV."""
        content = _estimator().export_csv()
        if content is None:
            return jsonify({"detail": "No data to export yet!"}), 404
        return Response(
            content,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    @app.route("/walks", methods=["DELETE"])
    def clear_walks():
        """Delete all recorded walks."""
        estimator = _estimator()
        estimator.clear_history()
        return jsonify(_stats_dict(estimator))

    # ========================================================================
    # Route Endpoints
    # ========================================================================

    @app.route("/route", methods=["POST"])
    def calculate_route():
        """Calculate a walking route between two addresses."""
        data = request.get_json(silent=True) or {}
        estimator = _estimator()
        estimate = asyncio.run(
            estimator.calculate_route(data.get("start", ""), data.get("end", ""))
        )
        return jsonify(_estimate_dict(estimate, estimator.route.distance_text))

    @app.route("/route/estimate", methods=["POST"])
    def estimate_route():
        """Estimate a route with a known distance and provider duration."""
        data = request.get_json(silent=True) or {}
        try:
            distance_km = float(data["distance_km"])
            duration_minutes = float(data.get("duration_minutes", 0.0))
        except (KeyError, TypeError, ValueError):
            return jsonify({"detail": "distance_km is required"}), 400
        if distance_km <= 0 or duration_minutes < 0:
            return jsonify({"detail": "Invalid distance or duration"}), 400

        route = PlannedRoute(
            distance_km=distance_km,
            duration_minutes=duration_minutes,
            start_address=data.get("start"),
            end_address=data.get("end"),
        )
        return jsonify(_estimate_dict(_estimator().set_route(route)))

    @app.route("/route", methods=["GET"])
    def get_route_estimate():
        estimator = _estimator()
        estimate = estimator.current_estimate()
        if estimate is None:
            return jsonify({"detail": "No route calculated"}), 404
        return jsonify(_estimate_dict(estimate, estimator.route.distance_text))

    # ========================================================================
    # Tracking Endpoints
    # ========================================================================

    @app.route("/tracking", methods=["GET"])
    def get_tracking_status():
        return jsonify(_status_dict(_estimator()))

    @app.route("/tracking/start", methods=["POST"])
    def start_tracking():
        estimator = _estimator()
        estimator.start_tracking()
        return jsonify(_status_dict(estimator))

    @app.route("/tracking/samples", methods=["POST"])
    def submit_sample():
        """Deliver one GPS fix to the active session."""
        data = request.get_json(silent=True) or {}
        try:
            sample = PositionSample(
                lat=float(data["lat"]),
                lng=float(data["lng"]),
                timestamp_ms=int(data["timestamp_ms"]),
                accuracy_m=float(data["accuracy_m"]),
            )
        except (KeyError, TypeError, ValueError):
            return jsonify({"detail": "lat, lng, timestamp_ms and accuracy_m are required"}), 400

        update = _estimator().ingest_sample(sample)
        return jsonify({
            "accepted": update.accepted,
            "total_distance_walked": update.total_distance_walked,
            "instant_speed": update.instant_speed,
            "smoothed_speed": update.smoothed_speed,
            "remaining_distance": update.remaining_distance,
            "remaining_time": update.remaining_time,
        })

    @app.route("/tracking/stop", methods=["POST"])
    def stop_tracking():
        estimator = _estimator()
        walk = estimator.stop_tracking()
        return jsonify({
            "saved": walk is not None,
            "walk": walk.to_dict() if walk is not None else None,
            "settings": _settings_dict(estimator),
        })

    @app.route("/tracking/error", methods=["POST"])
    def report_location_error():
        data = request.get_json(silent=True) or {}
        estimator = _estimator()
        error = estimator.fail_tracking(data.get("code"))
        return jsonify({
            "state": estimator.tracking_state.value,
            "code": error.code,
            "message": error.message,
        })

    @app.route("/traces/replay", methods=["POST"])
    def replay_trace():
        """Replay a recorded GPS trace through the tracking filter."""
        data = request.get_json(silent=True) or {}
        if "path" not in data:
            return jsonify({"detail": "path is required"}), 400

        path = Path(data["path"])
        if not path.is_file():
            return jsonify({"detail": f"Trace file does not exist: {data['path']}"}), 400

        try:
            result = _estimator().replay_trace(path)
        except ValueError as e:
            return jsonify({"detail": f"Could not parse trace: {e}"}), 400

        return jsonify({
            "sample_count": result.sample_count,
            "accepted_count": result.accepted_count,
            "dropped_count": result.dropped_count,
            "raw_distance_km": result.raw_distance_km,
            "total_distance_walked": result.total_distance_walked,
            "smoothed_speed": result.smoothed_speed,
            "walk": result.walk.to_dict() if result.walk is not None else None,
        })

    # ========================================================================
    # Errors
    # ========================================================================

    @app.errorhandler(WalkPaceError)
    def handle_walkpace_error(error: WalkPaceError):
        status = 400
        if isinstance(error, TrackingStateError):
            status = 409
        elif isinstance(error, DirectionsError):
            status = 502
        return jsonify({"detail": error.message, "code": error.code}), status


# ============================================================================
# Startup
# ============================================================================

def create_app(
    config: Optional[AppConfig] = None,
    estimator: Optional[WalkingEstimator] = None,
) -> Flask:
    """Create and configure the Flask app."""
    if config is None:
        config = AppConfig.from_env()

    app = Flask(__name__)
    app.config["WALKPACE_CONFIG"] = config
    app.extensions["walkpace"] = estimator or build_estimator(config)
    register_routes(app)

    logger.info(f"WalkPace (Flask) using data folder: {config.data_dir}")
    return app


if __name__ == "__main__":
    import os
    import sys

    # Allow specifying data folder as argument
    if len(sys.argv) > 1:
        os.environ["WALKPACE_DATA_DIR"] = sys.argv[1]

    create_app().run(host="0.0.0.0", port=8000, debug=True)
