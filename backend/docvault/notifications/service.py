"""In-app notifications.

Delivery is a row in the ``notification`` table; rows are written in the
caller's transaction.
"""

import logging
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..domain.documents.access_level import AccessLevel
from ..models.document import Document
from ..models.notification import Notification
from ..models.user import User
from ..pagination import offset_for, paginate

logger = logging.getLogger(__name__)


def notify_team_of_new_document(db: Session, document: Document, owner: User) -> int:
    """Notify the owner's direct reports about a new team document.

    Returns:
        int: Number of notifications written (0 unless access level is team)
    """
    if AccessLevel(document.access_level) is not AccessLevel.TEAM:
        return 0

    member_ids = db.execute(select(User.id).where(User.manager_id == owner.id)).scalars().all()
    message = f'{owner.username} uploaded a new team document: "{document.original_filename}"'
    for member_id in member_ids:
        db.add(Notification(user_id=member_id, message=message, link=f"/documents/{document.id}"))

    if member_ids:
        db.flush()
        logger.info(
            f"Sent {len(member_ids)} notifications for new team document",
            extra={"document_id": str(document.id)},
        )
    return len(member_ids)


def notify_user_added_to_team(db: Session, user: User, manager: User) -> Notification:
    notification = Notification(
        user_id=user.id,
        message=f"You have been added to {manager.username}'s team.",
        link="/team",
    )
    db.add(notification)
    db.flush()
    return notification


def list_notifications(db: Session, user_id: UUID, page: int, limit: int) -> Dict[str, Any]:
    """Newest-first notifications of one user, paginated."""
    total = db.execute(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    ).scalar_one()
    rows = db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
        .offset(offset_for(page, limit))
        .limit(limit)
    ).scalars().all()
    return paginate([row.to_dict() for row in rows], total, page, limit)


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark every unread notification of the user as read; returns the count."""
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
