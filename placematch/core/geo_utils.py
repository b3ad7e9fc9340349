"""
Geographic utilities for place clustering and distance calculations.
"""

import math
from collections.abc import Sequence

from placematch.core.schemas import Place

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in kilometers between two (lat, lng) points in degrees.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlambda = math.radians(lng2 - lng1) / 2

    h = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlambda) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


def place_distance(place1: Place, place2: Place) -> float | None:
    """Distance in km between two places, or None when either lacks coordinates."""
    if not (place1.has_coordinates and place2.has_coordinates):
        return None
    return haversine_distance(place1.latitude, place1.longitude, place2.latitude, place2.longitude)


def centroid(places: Sequence[Place]) -> tuple[float, float]:
    """Arithmetic mean of the coordinates of the places that have them."""
    located = [p for p in places if p.has_coordinates]
    if not located:
        raise ValueError("centroid requires at least one place with coordinates")

    avg_lat = sum(p.latitude for p in located) / len(located)
    avg_lng = sum(p.longitude for p in located) / len(located)
    return avg_lat, avg_lng
