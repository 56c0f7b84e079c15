"""
Journeys Module

Scheduled bus journeys between cities: the public listing with available
seats, journey details, and the driver's view of assigned journeys and
passenger pickups.
"""

from .router import router, driver_router
from .service import JourneyService

__all__ = [
    "router",
    "driver_router",
    "JourneyService"
]
