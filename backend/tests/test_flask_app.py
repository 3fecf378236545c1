"""
Tests for the Flask variant of the API.
"""

import math

import pytest

from walkpace.config import AppConfig
from walkpace.flask_app import create_app
from walkpace.services.estimator import WalkingEstimator
from walkpace.services.storage import LocalStore, WalkStore
from walkpace.utils.geo import EARTH_RADIUS_KM


START_MS = 1_700_000_000_000


def lat_offset(km: float) -> float:
    return math.degrees(km / EARTH_RADIUS_KM)


@pytest.fixture
def clock():
    now = {"ms": START_MS}
    return now


@pytest.fixture
def client(tmp_path, clock):
    estimator = WalkingEstimator(
        WalkStore(LocalStore(tmp_path)), clock=lambda: clock["ms"]
    )
    app = create_app(AppConfig(data_dir=tmp_path), estimator=estimator)
    app.config["TESTING"] = True
    return app.test_client()


class TestFlaskApp:
    """Smoke tests mirroring the FastAPI endpoints."""

    def test_health(self, client):
        data = client.get("/health").get_json()
        assert data["status"] == "healthy"
        assert data["tracking"] == "idle"

    def test_settings_update(self, client):
        response = client.put("/settings", json={"average_speed": 4.0})
        assert response.status_code == 200
        assert response.get_json()["personalized_speed"] == pytest.approx(4.0)

    def test_settings_rejects_non_positive(self, client):
        response = client.put("/settings", json={"terrain_factor": -1})
        assert response.status_code == 400

    def test_rejected_settings_leave_speed_unchanged(self, client):
        response = client.put("/settings", json={"average_speed": 9, "terrain_factor": 0})
        assert response.status_code == 400

        data = client.get("/settings").get_json()
        assert data["average_speed"] == 5.5
        assert data["terrain_factor"] == 1.0

    @pytest.mark.parametrize("limit", [0, -3])
    def test_walks_limit_must_be_positive(self, client, limit):
        response = client.get(f"/walks?limit={limit}")
        assert response.status_code == 400

    def test_walks_limit(self, client):
        assert client.get("/walks?limit=2").get_json() == []

    def test_route_without_provider_key(self, client):
        response = client.post("/route", json={"start": "Home", "end": "Park"})
        assert response.status_code == 502
        assert response.get_json()["code"] == "REQUEST_DENIED"

    def test_route_missing_address(self, client):
        response = client.post("/route", json={"start": "Home"})
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_INPUT"

    def test_known_route_estimate(self, client):
        response = client.post("/route/estimate", json={"distance_km": 5.5, "duration_minutes": 66})
        assert response.status_code == 200
        data = response.get_json()
        assert data["personal_minutes"] == pytest.approx(60.0)
        assert data["faster"] is True

    def test_double_start(self, client):
        client.post("/tracking/start")
        assert client.post("/tracking/start").status_code == 409

    def test_tracked_walk_saved(self, client, clock):
        client.post("/tracking/start")
        for i in range(5):
            client.post("/tracking/samples", json={
                "lat": 24.8 + lat_offset(i * 0.25),
                "lng": 120.9,
                "timestamp_ms": START_MS + i * 180_000,
                "accuracy_m": 12.0,
            })
        clock["ms"] = START_MS + 12 * 60_000

        data = client.post("/tracking/stop").get_json()

        assert data["saved"] is True
        assert data["walk"]["speed"] == pytest.approx(5.0, rel=1e-6)
        assert len(client.get("/walks").get_json()) == 1
        export = client.get("/walks/export")
        assert export.status_code == 200
        assert export.mimetype == "text/csv"

    def test_location_error(self, client):
        client.post("/tracking/start")
        data = client.post("/tracking/error", json={"code": 3}).get_json()
        assert data["code"] == "TIMEOUT"
        assert data["state"] == "idle"

    def test_export_without_data(self, client):
        assert client.get("/walks/export").status_code == 404

    def test_client_config(self, client):
        data = client.get("/config").get_json()
        assert data["gps"]["maximum_age_ms"] == 2000
        assert data["directions_configured"] is False
