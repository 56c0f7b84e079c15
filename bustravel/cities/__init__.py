"""
Cities Module

Reference data for the cities journeys run between, and the geofence that
decides whether a pickup point lies inside a city's pickup radius.

Key Components:
- geofence.py: haversine distance and radius checks
- service.py: city lookups
- router.py: FastAPI endpoint listing cities
"""

from .router import router
from .geofence import GeoPoint, haversine_distance, is_within_radius
from .service import CityService
from .schemas import CityInfo

__all__ = [
    "router",
    "GeoPoint",
    "haversine_distance",
    "is_within_radius",
    "CityService",
    "CityInfo"
]
