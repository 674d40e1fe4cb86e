"""Authorization guard: role-threshold checks over the UserRole hierarchy."""

from __future__ import annotations

from auth.models import UserRole


def is_at_least(caller_role: object, required_role: object) -> bool:
    """Return True if caller_role grants at least the privilege of required_role.

    Lower numeric value = broader privilege, so ADMIN (1) satisfies a
    MANAGER (2) requirement. Total: any value outside UserRole, on either
    side, denies instead of raising.

        is_at_least(UserRole.ADMIN, UserRole.MANAGER)  # True
        is_at_least(UserRole.USER, UserRole.MANAGER)   # False
        is_at_least(3, UserRole.GUEST)                 # False -- 3 is not a role
    """
    caller = UserRole.parse(caller_role)
    required = UserRole.parse(required_role)
    if caller is None or required is None:
        return False
    return caller <= required
