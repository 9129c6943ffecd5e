"""Team management endpoints (Manager or Admin)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.user import User
from .service import (
    TeamError,
    TeamUserNotFoundError,
    add_user_to_team,
    get_available_users,
    get_team,
    remove_user_from_team,
)

router = APIRouter(prefix="/team", tags=["Team"])

TeamManager = Annotated[User, Depends(require_role(UserRole.MANAGER))]


@router.get("")
def list_team(manager: TeamManager, db: Annotated[Session, Depends(get_db)]):
    """Users currently on the caller's team."""
    return [user.to_dict() for user in get_team(db, manager)]


@router.get("/available")
def list_available_users(manager: TeamManager, db: Annotated[Session, Depends(get_db)]):
    """Users that can be added to a team."""
    return [user.to_dict() for user in get_available_users(db)]


@router.put("/add/{user_id}")
def add_member(user_id: UUID, manager: TeamManager, db: Annotated[Session, Depends(get_db)]):
    try:
        user = add_user_to_team(db, manager, user_id)
    except TeamError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": "User added to team successfully.", "user": user.to_dict()}


@router.put("/remove/{user_id}")
def remove_member(user_id: UUID, manager: TeamManager, db: Annotated[Session, Depends(get_db)]):
    try:
        user = remove_user_from_team(db, manager, user_id)
    except TeamUserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TeamError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": "User removed from team successfully.", "user": user.to_dict()}
