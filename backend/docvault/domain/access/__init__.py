"""Access Control Engine.

Stateless: principals and the team directory are plain data, so the rules
can be evaluated concurrently from any number of request handlers.
"""

from .principals import (
    AdminPrincipal,
    ManagerPrincipal,
    MemberPrincipal,
    Principal,
    principal_for,
)
from .directory import TeamDirectory, load_team_directory
from .rules import (
    ACCESS_RULES,
    AccessRule,
    DocumentRef,
    build_access_filter,
    can_access,
    can_modify,
    matching_rule,
)

__all__ = [
    "AdminPrincipal",
    "ManagerPrincipal",
    "MemberPrincipal",
    "Principal",
    "principal_for",
    "TeamDirectory",
    "load_team_directory",
    "ACCESS_RULES",
    "AccessRule",
    "DocumentRef",
    "build_access_filter",
    "can_access",
    "can_modify",
    "matching_rule",
]
