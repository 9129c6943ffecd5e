"""Team management: assigning Users to a Manager.

A team is the set of users whose ``manager_id`` is the manager. Only plain
Users can join a team, and a User belongs to at most one team.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth.roles import UserRole
from ..models.user import User
from ..notifications.service import notify_user_added_to_team

logger = logging.getLogger(__name__)


class TeamError(Exception):
    """Membership change rejected."""
    pass


class TeamUserNotFoundError(TeamError):
    pass


def get_team(db: Session, manager: User) -> List[User]:
    return list(
        db.execute(select(User).where(User.manager_id == manager.id).order_by(User.username)).scalars()
    )


def get_available_users(db: Session) -> List[User]:
    """Users with role User that are not on any team."""
    return list(
        db.execute(
            select(User)
            .where(User.role == UserRole.USER.value, User.manager_id.is_(None))
            .order_by(User.username)
        ).scalars()
    )


def add_user_to_team(db: Session, manager: User, user_id: UUID) -> User:
    """Put a User on the manager's team and notify them.

    Raises:
        TeamError: Unknown user, Admin/Manager target, or already on a team
    """
    user = db.get(User, user_id)
    if user is None or user.role != UserRole.USER.value:
        raise TeamError("User not found or cannot be added to a team.")

    if user.manager_id is not None:
        if user.manager_id == manager.id:
            raise TeamError("User is already in your team.")
        raise TeamError("User is already in another team.")

    user.manager_id = manager.id
    notify_user_added_to_team(db, user, manager)
    db.commit()

    logger.info("User added to team", extra={"user_id": str(user.id)})
    return user


def remove_user_from_team(db: Session, manager: User, user_id: UUID) -> User:
    """Take a User off the manager's team.

    Raises:
        TeamUserNotFoundError: Unknown user
        TeamError: User is not on this manager's team
    """
    user = db.get(User, user_id)
    if user is None:
        raise TeamUserNotFoundError("User not found.")

    if user.manager_id != manager.id:
        raise TeamError("User is not on your team.")

    user.manager_id = None
    db.commit()

    logger.info("User removed from team", extra={"user_id": str(user.id)})
    return user
