"""User roles and permission hierarchy for DocVault.

Role Hierarchy (descending permissions):
- Admin: Sees and modifies every document, views dashboard statistics
- Manager: Uploads documents, manages a team of Users
- User: Reads documents visible to them, may belong to one Manager's team

Permission Matrix:
┌──────────────────────────┬───────┬─────────┬──────┐
│ Action                   │ Admin │ Manager │ User │
├──────────────────────────┼───────┼─────────┼──────┤
│ View dashboard stats     │   ✓   │         │      │
│ Manage team              │   ✓   │    ✓    │      │
│ Upload documents         │   ✓   │    ✓    │      │
│ Modify own documents     │   ✓   │    ✓    │  ✓   │
│ Modify others' documents │   ✓   │         │      │
│ List / search / download │   ✓   │    ✓    │  ✓   │
└──────────────────────────┴───────┴─────────┴──────┘

Document visibility is not a function of role alone; see domain.access.
"""

from enum import Enum
from typing import Set


class UserRole(str, Enum):
    """User roles in DocVault.

    Values are stored as TEXT in the database and must match exactly.
    """
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.MANAGER, UserRole.USER},
    UserRole.MANAGER: {UserRole.MANAGER, UserRole.USER},
    UserRole.USER: {UserRole.USER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role satisfies an action requiring a specific role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.MANAGER)
        True
        >>> has_permission(UserRole.USER, UserRole.MANAGER)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that satisfy a requirement.

    Example:
        >>> sorted(r.value for r in get_allowed_roles(UserRole.MANAGER))
        ['Admin', 'Manager']
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}
