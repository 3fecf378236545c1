"""
Great-circle distance utilities.

All functions accept scalars or numpy arrays of coordinates in degrees.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


EARTH_RADIUS_KM = 6371.0  # Earth's mean radius


def haversine_km(lat1: ArrayLike, lng1: ArrayLike, lat2: ArrayLike, lng2: ArrayLike):
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lng1: First point coordinates in degrees
        lat2, lng2: Second point coordinates in degrees

    Returns:
        Distance in kilometres (same shape as the inputs)
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(np.subtract(lat2, lat1))
    dlng = np.radians(np.subtract(lng2, lng1))

    a = np.sin(dlat/2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlng/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))

    return EARTH_RADIUS_KM * c


def segment_distances_km(
    lat: NDArray[np.float64],
    lng: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Distance between each pair of consecutive points along a track.

    Returns:
        Array of length len(lat) - 1 (empty for fewer than 2 points)
    """
    lat = np.asarray(lat, dtype=np.float64)
    lng = np.asarray(lng, dtype=np.float64)
    if lat.size < 2:
        return np.zeros(0, dtype=np.float64)
    return haversine_km(lat[:-1], lng[:-1], lat[1:], lng[1:])
