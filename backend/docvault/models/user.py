"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, Index, DateTime, Uuid, event
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow


class User(Base):
    """User model representing authenticated DocVault accounts.

    Users form a two-level team tree: a user with role ``User`` may reference
    one ``Manager`` through ``manager_id``. Admins and Managers never have a
    manager. Team membership is the adjacency relation the access rules read.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    role = Column(Text, nullable=False, default="User")
    manager_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    manager = relationship("User", remote_side=[id], back_populates="reports")
    reports = relationship("User", back_populates="manager")

    __table_args__ = (
        CheckConstraint(
            "role IN ('User', 'Manager', 'Admin')",
            name='ck_user_role'
        ),
        Index("ix_user_manager_id", "manager_id"),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @validates('username')
    def validate_username(self, key, value):
        value = (value or "").strip()
        if not value:
            raise ValueError("Username cannot be empty")
        return value

    def to_summary(self):
        """Short owner/uploader representation used in document listings"""
        return {"id": str(self.id), "username": self.username}

    def to_dict(self):
        """Convert user to dictionary representation"""
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "manager_id": str(self.manager_id) if self.manager_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def clear_manager_for_admin(mapper, connection, target):
    """An Admin never reports to a manager."""
    if target.role == "Admin":
        target.manager_id = None
