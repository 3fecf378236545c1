"""
Tests for great-circle distance utilities.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from walkpace.utils.geo import EARTH_RADIUS_KM, haversine_km, segment_distances_km


class TestHaversineKm:
    """Tests for haversine distance calculation."""

    def test_same_point_zero_distance(self):
        """Same point should have zero distance."""
        assert haversine_km(24.8138, 120.9675, 24.8138, 120.9675) == 0.0

    def test_one_degree_latitude(self):
        """One degree of latitude should be ~111km."""
        dist = haversine_km(32.0, -89.0, 33.0, -89.0)
        assert_allclose(dist, 111.19, rtol=0.001)

    def test_symmetric(self):
        """Distance should be symmetric."""
        d1 = haversine_km(32.0, -89.0, 33.0, -88.0)
        d2 = haversine_km(33.0, -88.0, 32.0, -89.0)
        assert_allclose(d1, d2, rtol=1e-12)

    def test_hundred_metres_north(self):
        """A latitude offset of 0.1 km / R radians is 100 m."""
        dlat = math.degrees(0.1 / EARTH_RADIUS_KM)
        dist = haversine_km(24.8138, 120.9675, 24.8138 + dlat, 120.9675)
        assert dist == pytest.approx(0.1, rel=1e-9)

    def test_vectorized(self):
        """Arrays of points should give element-wise distances."""
        lat1 = np.array([0.0, 10.0])
        lng1 = np.array([0.0, 10.0])
        lat2 = np.array([0.0, 11.0])
        lng2 = np.array([0.0, 10.0])

        dist = haversine_km(lat1, lng1, lat2, lng2)

        assert dist.shape == (2,)
        assert dist[0] == 0.0
        assert_allclose(dist[1], 111.19, rtol=0.001)


class TestSegmentDistances:
    """Tests for consecutive-point distances."""

    def test_single_point_is_empty(self):
        result = segment_distances_km(np.array([1.0]), np.array([2.0]))
        assert result.size == 0

    def test_segments_sum_to_path_length(self):
        """Three collinear points along a meridian."""
        step = math.degrees(0.05 / EARTH_RADIUS_KM)
        lat = np.array([10.0, 10.0 + step, 10.0 + 2 * step])
        lng = np.array([20.0, 20.0, 20.0])

        result = segment_distances_km(lat, lng)

        assert result.shape == (2,)
        assert_allclose(result, [0.05, 0.05], rtol=1e-6)
        assert_allclose(result.sum(), 0.1, rtol=1e-6)
