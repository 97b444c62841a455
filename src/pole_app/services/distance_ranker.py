"""Great-circle distance and proximity ordering of pole records."""
from math import radians, sin, cos, atan2, sqrt

EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on earth

    Args:
        lat1, lon1: Coordinates of first point (decimal degrees)
        lat2, lon2: Coordinates of second point (decimal degrees)

    Returns:
        Distance in kilometers
    """
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _coordinates(item):
    if isinstance(item, dict):
        return item.get('latitude'), item.get('longitude')
    return getattr(item, 'latitude', None), getattr(item, 'longitude', None)


def distance_to(item, reference) -> float:
    """Distance in km from ``reference`` to ``item``; infinite when ``item`` has no coordinates."""
    ref_lat, ref_lon = _coordinates(reference)
    lat, lon = _coordinates(item)
    if lat is None or lon is None:
        return float('inf')
    return haversine_distance(ref_lat, ref_lon, lat, lon)


def rank_by_distance(records, reference):
    """Return a new list ordered nearest-first from ``reference``.

    Ties keep their input order. Records without coordinates sort last.
    Works on mappings or objects exposing ``latitude``/``longitude``.
    """
    return sorted(records, key=lambda record: distance_to(record, reference))
