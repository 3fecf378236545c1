"""
Tests for API endpoints.
"""

import math

import httpx
import pytest
from fastapi.testclient import TestClient

from walkpace.config import AppConfig
from walkpace.main import create_app
from walkpace.services.directions import DirectionsClient
from walkpace.services.estimator import WalkingEstimator
from walkpace.services.storage import LocalStore, WalkStore
from walkpace.utils.geo import EARTH_RADIUS_KM


START_MS = 1_700_000_000_000


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def lat_offset(km: float) -> float:
    return math.degrees(km / EARTH_RADIUS_KM)


def directions_handler(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("destination") == "Nowhere":
        return httpx.Response(200, json={"status": "NOT_FOUND"})
    return httpx.Response(200, json={
        "status": "OK",
        "routes": [{
            "legs": [{
                "distance": {"value": 2750, "text": "2.8 km"},
                "duration": {"value": 2100, "text": "35 mins"},
            }]
        }],
    })


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def estimator(tmp_path, clock):
    directions = DirectionsClient(
        api_key="test-key",
        base_url="https://directions.test/json",
        transport=httpx.MockTransport(directions_handler),
    )
    return WalkingEstimator(WalkStore(LocalStore(tmp_path)), directions, clock=clock)


@pytest.fixture
def client(tmp_path, estimator):
    """Create test client around a temporary data folder."""
    app = create_app(AppConfig(data_dir=tmp_path), estimator=estimator)
    with TestClient(app) as client:
        yield client


def walk_three_km(client, clock):
    """Track a 3 km walk north over 36 minutes."""
    assert client.post("/tracking/start").status_code == 200
    for i in range(7):
        response = client.post("/tracking/samples", json={
            "lat": 24.8 + lat_offset(i * 0.5),
            "lng": 120.9,
            "timestamp_ms": START_MS + i * 360_000,
            "accuracy_m": 10.0,
        })
        assert response.status_code == 200
    clock.now_ms = START_MS + 36 * 60_000
    return client.post("/tracking/stop")


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "WalkPace"
        assert data["status"] == "running"

    def test_health_endpoint(self, client, tmp_path):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["data_folder"] == str(tmp_path)
        assert data["walk_count"] == 0
        assert data["tracking"] == "idle"

    def test_client_config(self, client):
        data = client.get("/config").json()
        assert data["zoom"] == 13
        assert data["gps"]["enable_high_accuracy"] is True
        assert data["gps"]["timeout_ms"] == 15000
        assert data["directions_configured"] is False


class TestSettingsEndpoints:
    """Tests for settings endpoints."""

    def test_defaults(self, client):
        data = client.get("/settings").json()
        assert data["average_speed"] == 5.5
        assert data["terrain_factor"] == 1.0
        assert data["terrain"] == "flat"
        assert data["personalized_speed"] == pytest.approx(5.5)

    def test_update(self, client, tmp_path):
        response = client.put("/settings", json={"terrain_factor": 0.8})
        assert response.status_code == 200
        data = response.json()
        assert data["terrain"] == "hilly"
        assert data["personalized_speed"] == pytest.approx(4.4)
        assert (tmp_path / "walkingUserSettings.json").exists()

    def test_update_rejects_non_positive(self, client):
        response = client.put("/settings", json={"average_speed": 0})
        assert response.status_code == 422


class TestWalkEndpoints:
    """Tests for history endpoints."""

    def test_empty_history(self, client):
        assert client.get("/walks").json() == []
        stats = client.get("/walks/stats").json()
        assert stats["total_walks"] == 0
        assert stats["average_speed"] == 5.5

    def test_export_without_data(self, client):
        response = client.get("/walks/export")
        assert response.status_code == 404
        assert response.json()["detail"] == "No data to export yet!"

    def test_export_after_walk(self, client, clock):
        walk_three_km(client, clock)

        response = client.get("/walks/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "walking_data_" in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert len(lines) == 2
        assert lines[0].startswith('"Date","Time","Route"')
        assert '"3.00","36","5.0","1"' in lines[1]

    def test_clear_history(self, client, clock):
        walk_three_km(client, clock)

        response = client.delete("/walks")
        assert response.status_code == 200
        assert response.json()["total_walks"] == 0
        assert client.get("/walks").json() == []


class TestRouteEndpoints:
    """Tests for route endpoints."""

    def test_calculate_route(self, client):
        response = client.post("/route", json={"start": "Home", "end": "Park"})
        assert response.status_code == 200
        data = response.json()
        assert data["distance_km"] == pytest.approx(2.75)
        assert data["distance_text"] == "2.8 km"
        assert data["provider_minutes"] == pytest.approx(35.0)
        assert data["personal_minutes"] == pytest.approx(2.75 / 5.5 * 60)
        assert data["faster"] is True

    def test_missing_address(self, client):
        response = client.post("/route", json={"start": "Home"})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INPUT"

    def test_provider_error(self, client):
        response = client.post("/route", json={"start": "Home", "end": "Nowhere"})
        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["detail"].startswith("Could not calculate route")

    def test_known_route_estimate(self, client):
        response = client.post("/route/estimate", json={
            "distance_km": 1.1,
            "duration_minutes": 10,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["personal_minutes"] == pytest.approx(12.0)
        assert data["difference_minutes"] == pytest.approx(-2.0)
        assert data["percent_difference"] == pytest.approx(20.0)
        assert data["faster"] is False

    def test_no_current_route(self, client):
        assert client.get("/route").status_code == 404

    def test_current_route_follows_settings(self, client):
        client.post("/route/estimate", json={"distance_km": 2.2, "duration_minutes": 30})
        client.put("/settings", json={"average_speed": 4.4})

        data = client.get("/route").json()
        assert data["personal_minutes"] == pytest.approx(30.0)


class TestTrackingEndpoints:
    """Tests for live tracking endpoints."""

    def test_status_idle(self, client):
        data = client.get("/tracking").json()
        assert data["state"] == "idle"
        assert data["speed_buffer"] == []

    def test_start(self, client):
        data = client.post("/tracking/start").json()
        assert data["state"] == "tracking"
        assert data["start_time_ms"] == START_MS
        assert data["total_distance_walked"] == 0.0

    def test_double_start(self, client):
        client.post("/tracking/start")
        response = client.post("/tracking/start")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

    def test_sample_while_idle_ignored(self, client):
        response = client.post("/tracking/samples", json={
            "lat": 24.8, "lng": 120.9, "timestamp_ms": START_MS, "accuracy_m": 5.0,
        })
        assert response.status_code == 200
        assert response.json()["accepted"] is False
        assert client.get("/tracking").json()["state"] == "idle"

    def test_coarse_sample_dropped(self, client):
        client.post("/tracking/start")
        response = client.post("/tracking/samples", json={
            "lat": 24.8, "lng": 120.9, "timestamp_ms": START_MS, "accuracy_m": 80.0,
        })
        assert response.status_code == 200
        assert response.json()["accepted"] is False

    def test_invalid_latitude(self, client):
        client.post("/tracking/start")
        response = client.post("/tracking/samples", json={
            "lat": 124.8, "lng": 120.9, "timestamp_ms": START_MS, "accuracy_m": 5.0,
        })
        assert response.status_code == 422

    def test_full_walk(self, client, clock, tmp_path):
        response = walk_three_km(client, clock)

        assert response.status_code == 200
        data = response.json()
        assert data["saved"] is True
        assert data["walk"]["distance"] == pytest.approx(3.0, rel=1e-6)
        assert data["walk"]["speed"] == pytest.approx(5.0, rel=1e-6)
        assert data["walk"]["duration"] == pytest.approx(36.0)
        assert data["walk"]["route"] == "Walk 1"
        assert data["settings"]["average_speed"] == 5.0
        assert client.get("/tracking").json()["state"] == "idle"
        assert len(client.get("/walks").json()) == 1
        assert (tmp_path / "walkingSpeedData.json").exists()

    def test_remaining_follows_route(self, client):
        client.post("/route/estimate", json={
            "distance_km": 1.0, "duration_minutes": 12, "start": "Home, Town", "end": "Park",
        })
        client.post("/tracking/start")
        client.post("/tracking/samples", json={
            "lat": 24.8, "lng": 120.9, "timestamp_ms": START_MS, "accuracy_m": 5.0,
        })
        data = client.post("/tracking/samples", json={
            "lat": 24.8 + lat_offset(0.1), "lng": 120.9,
            "timestamp_ms": START_MS + 60_000, "accuracy_m": 5.0,
        }).json()

        assert data["smoothed_speed"] == pytest.approx(6.0, rel=1e-4)
        assert data["remaining_distance"] == pytest.approx(0.9, rel=1e-4)
        assert data["remaining_time"] == pytest.approx(9.0, rel=1e-3)

    def test_short_walk_not_saved(self, client, clock):
        client.post("/tracking/start")
        client.post("/tracking/samples", json={
            "lat": 24.8, "lng": 120.9, "timestamp_ms": START_MS, "accuracy_m": 5.0,
        })
        clock.now_ms = START_MS + 60_000

        data = client.post("/tracking/stop").json()

        assert data["saved"] is False
        assert data["walk"] is None
        assert client.get("/walks").json() == []

    def test_location_error_aborts(self, client):
        client.post("/tracking/start")

        response = client.post("/tracking/error", json={"code": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["code"] == "PERMISSION_DENIED"
        assert data["message"].startswith("Location tracking error: ")
        assert client.get("/walks").json() == []


class TestTraceEndpoints:
    """Tests for trace replay."""

    def test_replay(self, client, tmp_path):
        lines = ["timestamp_ms,lat,lng,accuracy"]
        for i in range(13):
            lines.append(f"{START_MS + i * 60_000},{24.8 + lat_offset(i * 0.1):.10f},120.9,5")
        trace = tmp_path / "trace.csv"
        trace.write_text("\n".join(lines) + "\n")

        response = client.post("/traces/replay", json={"path": str(trace)})

        assert response.status_code == 200
        data = response.json()
        assert data["sample_count"] == 13
        assert data["total_distance_walked"] == pytest.approx(1.2, rel=1e-4)
        assert data["walk"]["speed"] == pytest.approx(6.0, rel=1e-4)
        assert client.get("/walks").json() == []

    def test_replay_missing_file(self, client, tmp_path):
        response = client.post("/traces/replay", json={"path": str(tmp_path / "none.csv")})
        assert response.status_code == 400
