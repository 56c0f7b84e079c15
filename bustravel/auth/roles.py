from enum import Enum
from typing import Dict, FrozenSet

from bustravel.exceptions import ForbiddenError
from bustravel.models import UserRole


class Capability(str, Enum):
    """Operations gated by role"""
    # admin
    MANAGE_JOURNEYS = "manage_journeys"
    MANAGE_DRIVERS = "manage_drivers"
    MANAGE_USERS = "manage_users"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    OVERRIDE_BOOKINGS = "override_bookings"
    # driver
    VIEW_ASSIGNED_JOURNEYS = "view_assigned_journeys"
    # admin + driver
    VIEW_PASSENGER_PICKUPS = "view_passenger_pickups"
    # traveller
    BOOK = "book"
    CANCEL_BOOKING = "cancel_booking"
    LIST_OWN_BOOKINGS = "list_own_bookings"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.ADMIN: frozenset({
        Capability.MANAGE_JOURNEYS,
        Capability.MANAGE_DRIVERS,
        Capability.MANAGE_USERS,
        Capability.VIEW_ALL_BOOKINGS,
        Capability.OVERRIDE_BOOKINGS,
        Capability.VIEW_PASSENGER_PICKUPS,
    }),
    UserRole.DRIVER: frozenset({
        Capability.VIEW_ASSIGNED_JOURNEYS,
        Capability.VIEW_PASSENGER_PICKUPS,
    }),
    UserRole.TRAVELLER: frozenset({
        Capability.BOOK,
        Capability.CANCEL_BOOKING,
        Capability.LIST_OWN_BOOKINGS,
    }),
}


def has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(UserRole(role), frozenset())


def ensure_capability(role: UserRole, capability: Capability) -> None:
    """Raise ForbiddenError unless the role grants the capability"""
    if not has_capability(role, capability):
        raise ForbiddenError(f"Role '{UserRole(role).value}' may not {capability.value.replace('_', ' ')}")
