"""Notification endpoints for the authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.dependencies import CurrentUser
from ..database import get_db
from ..pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .service import list_notifications, mark_all_read

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def get_my_notifications(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    return list_notifications(db, current_user.id, page=page, limit=limit)


@router.put("/read")
def mark_notifications_read(current_user: CurrentUser, db: Annotated[Session, Depends(get_db)]):
    """Mark all unread notifications as read."""
    updated = mark_all_read(db, current_user.id)
    db.commit()
    return {"message": "Notifications marked as read.", "updated": updated}
