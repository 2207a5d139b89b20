"""
Helper utilities shared by services.
"""
import math
from typing import Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def canonical_pair(user_a: int, user_b: int) -> Tuple[int, int]:
    """
    Order a pair of user IDs as (smaller, larger).

    Matches and row locks are keyed by this pair so that A→B and B→A
    resolve to the same record.

    Example:
        >>> canonical_pair(7, 3)
        (3, 7)
    """
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points in kilometres.

    Args:
        lat1, lng1: First point in decimal degrees
        lat2, lng2: Second point in decimal degrees

    Returns:
        Distance in kilometres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Latitude/longitude box that contains every point within ``radius_km``.

    Used as a cheap SQL prefilter before the exact haversine check.

    Returns:
        (min_lat, max_lat, min_lng, max_lng)
    """
    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    min_lat = max(-90.0, lat - lat_delta)
    max_lat = min(90.0, lat + lat_delta)

    # Widest longitude on the circle is asin(sin(d) / cos(lat)), reached off the centre parallel
    cos_lat = math.cos(math.radians(lat))
    if max_lat >= 90.0 or min_lat <= -90.0 or cos_lat < 1e-6:
        return min_lat, max_lat, -180.0, 180.0
    reach = math.sin(radius_km / EARTH_RADIUS_KM) / cos_lat
    if reach >= 1.0:
        return min_lat, max_lat, -180.0, 180.0

    lng_delta = math.degrees(math.asin(reach))
    min_lng, max_lng = lng - lng_delta, lng + lng_delta
    # Boxes crossing the antimeridian fall back to the full longitude range
    if min_lng < -180.0 or max_lng > 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return min_lat, max_lat, min_lng, max_lng


def round_distance(distance_km: Optional[float]) -> Optional[float]:
    """Round a distance to 0.1 km for display."""
    if distance_km is None:
        return None
    return round(distance_km, 1)


def distance_between(viewer, other) -> Optional[float]:
    """
    Great-circle distance between two users, or None when either has no location.

    Both arguments only need ``latitude`` and ``longitude`` attributes.
    """
    if None in (viewer.latitude, viewer.longitude, other.latitude, other.longitude):
        return None
    return haversine_km(viewer.latitude, viewer.longitude, other.latitude, other.longitude)
