# rentals/core/roles.py
"""
User roles and the capability predicates every permission check goes through.

All checks are flat comparisons on ``user.role`` / owner ids, so they work on
ORM rows and on plain objects alike.
"""
from enum import Enum


class Role(str, Enum):
    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


# Roles a user may pick for themselves at registration
SELF_ASSIGNABLE_ROLES = (Role.GUEST, Role.HOST)


def is_admin(user) -> bool:
    return user is not None and user.role == Role.ADMIN.value


def has_role(user, *roles: Role) -> bool:
    return user is not None and user.role in {r.value for r in roles}


def is_host_of(user, prop) -> bool:
    """True when ``user`` owns the listing ``prop``."""
    return user is not None and prop is not None and prop.host_id == user.id


def is_owner_of(user, booking) -> bool:
    """True when ``user`` is the guest who made ``booking``."""
    return user is not None and booking is not None and booking.guest_id == user.id


def can_manage_property(user, prop) -> bool:
    return is_admin(user) or is_host_of(user, prop)
