"""Principals: the closed set of actor variants the access rules match on.

A principal is built once per request from the loaded User row and carries
everything the rules need, so rule evaluation never touches the database.
"""

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from ...auth.roles import UserRole


@dataclass(frozen=True)
class AdminPrincipal:
    user_id: UUID

    @property
    def role(self) -> UserRole:
        return UserRole.ADMIN


@dataclass(frozen=True)
class ManagerPrincipal:
    user_id: UUID

    @property
    def role(self) -> UserRole:
        return UserRole.MANAGER


@dataclass(frozen=True)
class MemberPrincipal:
    """A plain User, optionally on one Manager's team."""
    user_id: UUID
    manager_id: Optional[UUID] = None

    @property
    def role(self) -> UserRole:
        return UserRole.USER


Principal = Union[AdminPrincipal, ManagerPrincipal, MemberPrincipal]


def principal_for(user) -> Principal:
    """Build the principal variant for a User row (or any object with
    ``id``, ``role`` and ``manager_id`` attributes).

    Raises:
        ValueError: If the role is unknown
    """
    role = UserRole(user.role)
    if role is UserRole.ADMIN:
        return AdminPrincipal(user_id=user.id)
    if role is UserRole.MANAGER:
        return ManagerPrincipal(user_id=user.id)
    return MemberPrincipal(user_id=user.id, manager_id=user.manager_id)
