"""
Geofencing helper tests
"""
from ojt_monitoring.utils.geometry import geo_point, has_safe_zone, is_point_in_polygon

from tests.conftest import INSIDE, OUTSIDE, SAFE_ZONE


class TestPointInPolygon:

    def test_point_inside_square(self):
        assert is_point_in_polygon(INSIDE, SAFE_ZONE["coordinates"]) is True

    def test_point_outside_square(self):
        assert is_point_in_polygon(OUTSIDE, SAFE_ZONE["coordinates"]) is False

    def test_concave_polygon_notch_is_outside(self):
        # U shape: the notch between the arms is outside
        u_shape = [[[0, 0], [3, 0], [3, 3], [2, 3], [2, 1], [1, 1], [1, 3], [0, 3], [0, 0]]]
        assert is_point_in_polygon([1.5, 2], u_shape) is False
        assert is_point_in_polygon([0.5, 2], u_shape) is True

    def test_empty_polygon(self):
        assert is_point_in_polygon(INSIDE, []) is False
        assert is_point_in_polygon(INSIDE, [[]]) is False


class TestSafeZoneHelpers:

    def test_has_safe_zone(self):
        assert has_safe_zone(SAFE_ZONE)
        assert not has_safe_zone(None)
        assert not has_safe_zone({"type": "Polygon", "coordinates": []})

    def test_geo_point(self):
        assert geo_point([120, 15]) == {"type": "Point", "coordinates": [120.0, 15.0]}
        assert geo_point(None) is None
