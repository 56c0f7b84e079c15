import math
from typing import NamedTuple

from bustravel.exceptions import InvalidCoordinateError, InvalidInputError

EARTH_RADIUS_KM = 6371.0


class GeoPoint(NamedTuple):
    lat: float
    lng: float


def validate_point(point: GeoPoint) -> GeoPoint:
    """Reject latitudes/longitudes outside their ranges (or NaN/inf)"""
    lat, lng = point
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidCoordinateError(f"Coordinate ({lat}, {lng}) is not a finite number")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(f"Latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lng <= 180.0:
        raise InvalidCoordinateError(f"Longitude {lng} is outside [-180, 180]")
    return GeoPoint(lat, lng)


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometers"""
    a = validate_point(a)
    b = validate_point(b)

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lng = math.radians(b.lng - a.lng)

    h = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(h, 1.0)))

    return EARTH_RADIUS_KM * c


def is_within_radius(point: GeoPoint, city_center: GeoPoint, radius_km: float) -> bool:
    """True when the point lies inside the circle; the boundary counts as inside."""
    if not math.isfinite(radius_km) or radius_km < 0:
        raise InvalidInputError(f"Radius {radius_km} km is not a valid radius")
    return haversine_distance(point, city_center) <= radius_km
