"""Notification SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, ForeignKey, Boolean, Index, DateTime, Uuid

from .base import Base, utcnow


class Notification(Base):
    """In-app notification shown to a single user."""
    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_user_id_read", "user_id", "read"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(Text, nullable=True)  # Frontend route, e.g. /documents/{id}
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": str(self.id),
            "message": self.message,
            "link": self.link,
            "read": self.read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
