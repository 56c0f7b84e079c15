"""
Bus Travel Booking System

Seat bookings on scheduled bus journeys between cities, with pickup points
checked against each origin city's pickup radius, a per-journey capacity
ledger, and cascades keeping journeys, drivers and bookings consistent when
accounts change.
"""

__version__ = "1.0.0"
