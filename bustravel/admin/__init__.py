"""
Admin System Module

Administrative management of journeys, drivers, users and bookings.
Deletions and role changes go through the cascade coordinator so that
journeys, driver assignments, bookings and the capacity ledger change
together.
"""

from .router import router
from .admin_service import AdminManagementService
from .cascade import CascadeCoordinator

__all__ = ["router", "AdminManagementService", "CascadeCoordinator"]
