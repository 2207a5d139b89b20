"""
Tests for validators and geometry helpers.
"""
import math
from datetime import date

import pytest

from app.core.errors import InvalidInput
from app.utils.helpers import EARTH_RADIUS_KM, bounding_box, canonical_pair, haversine_km, round_distance
from app.utils.validators import (
    normalize_email,
    validate_adult,
    validate_page_limit,
    validate_password,
    validate_text_length,
)


class TestValidators:
    """Tests for request field validators."""

    def test_normalize_email_lowercases(self):
        assert normalize_email("  Alice@Example.COM ") == "alice@example.com"

    @pytest.mark.parametrize("email", [None, "", "   ", "no-at-sign", "a@b"])
    def test_normalize_email_rejects(self, email):
        with pytest.raises(InvalidInput):
            normalize_email(email)

    @pytest.mark.parametrize("password", ["Passw0rd", "abcdefg1", "1234567a"])
    def test_password_accepted(self, password):
        assert validate_password(password) == password

    @pytest.mark.parametrize("password", [None, "Pass1", "password", "12345678"])
    def test_password_rejected(self, password):
        with pytest.raises(InvalidInput):
            validate_password(password)

    def test_adult_boundary(self):
        assert validate_adult(date(2008, 10, 19), today=date(2026, 10, 19)) == date(2008, 10, 19)
        with pytest.raises(InvalidInput):
            validate_adult(date(2008, 10, 20), today=date(2026, 10, 19))

    def test_text_length_keeps_whitespace(self):
        assert validate_text_length("  hi  ", "Message", min_length=1) == "  hi  "

    def test_text_length_bounds(self):
        with pytest.raises(InvalidInput, match="cannot be empty"):
            validate_text_length("", "Message", min_length=1)
        with pytest.raises(InvalidInput, match="at least 10"):
            validate_text_length("short", "Description", min_length=10)
        with pytest.raises(InvalidInput, match="cannot exceed 5"):
            validate_text_length("toolong", "Reason", max_length=5)

    def test_page_limit(self):
        assert validate_page_limit(None, default=20, maximum=50) == 20
        assert validate_page_limit(50, default=20, maximum=50) == 50
        assert validate_page_limit(80, default=20, maximum=50, clamp=True) == 50
        with pytest.raises(InvalidInput):
            validate_page_limit(80, default=20, maximum=50)
        with pytest.raises(InvalidInput):
            validate_page_limit(0, default=20, maximum=50, clamp=True)


class TestGeometry:
    """Tests for distance helpers."""

    def test_canonical_pair(self):
        assert canonical_pair(7, 3) == (3, 7)
        assert canonical_pair(3, 7) == (3, 7)

    def test_haversine_known_distance(self):
        # Taipei 101 to Taipei Main Station is roughly 5 km
        distance = haversine_km(25.0330, 121.5654, 25.0478, 121.5170)
        assert 4.5 < distance < 5.5

    def test_haversine_zero(self):
        assert haversine_km(10.0, 20.0, 10.0, 20.0) == 0.0

    def test_bounding_box_contains_radius(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(25.0, 121.5, 50)

        assert min_lat < 25.0 < max_lat
        assert min_lng < 121.5 < max_lng
        assert haversine_km(25.0, 121.5, max_lat, 121.5) == pytest.approx(50, rel=1e-6)

    @pytest.mark.parametrize("lat", [0.0, 45.0, 60.0, 80.0, -70.0])
    def test_bounding_box_holds_whole_circle(self, lat):
        radius_km = 100
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, 0.0, radius_km)
        d = radius_km / EARTH_RADIUS_KM
        phi = math.radians(lat)

        for step in range(3600):
            bearing = math.radians(step / 10)
            lat2 = math.asin(
                math.sin(phi) * math.cos(d) + math.cos(phi) * math.sin(d) * math.cos(bearing)
            )
            lng2 = math.atan2(
                math.sin(bearing) * math.sin(d) * math.cos(phi),
                math.cos(d) - math.sin(phi) * math.sin(lat2),
            )
            point_lat, point_lng = math.degrees(lat2), math.degrees(lng2)

            assert haversine_km(lat, 0.0, point_lat, point_lng) == pytest.approx(radius_km)
            assert min_lat - 1e-9 <= point_lat <= max_lat + 1e-9
            assert min_lng - 1e-9 <= point_lng <= max_lng + 1e-9

    def test_bounding_box_near_antimeridian(self):
        _, _, min_lng, max_lng = bounding_box(0.0, 179.9, 50)

        assert (min_lng, max_lng) == (-180.0, 180.0)

    def test_round_distance(self):
        assert round_distance(4.26) == 4.3
        assert round_distance(None) is None
