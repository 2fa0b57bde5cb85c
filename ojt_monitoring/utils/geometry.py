"""
Geofencing helpers for GeoJSON coordinates ([lng, lat]).
"""

from typing import Optional, Sequence


def is_point_in_polygon(point: Sequence[float], polygon: Sequence[Sequence[Sequence[float]]]) -> bool:
    """
    Ray-casting point-in-polygon test.

    Args:
        point: [lng, lat]
        polygon: GeoJSON Polygon coordinates; only the first (outer) ring is used

    Returns:
        True when the point lies inside the outer ring
    """
    if not polygon or not polygon[0]:
        return False

    x, y = point[0], point[1]
    ring = polygon[0]
    inside = False

    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def has_safe_zone(safe_zone: Optional[dict]) -> bool:
    """A company enforces geofencing only when its polygon has coordinates."""
    return bool(safe_zone and safe_zone.get("coordinates") and safe_zone["coordinates"][0])


def geo_point(coordinates: Optional[Sequence[float]]) -> Optional[dict]:
    """GeoJSON Point for storage, or None."""
    if not coordinates:
        return None
    return {"type": "Point", "coordinates": [float(coordinates[0]), float(coordinates[1])]}
