"""Document SQLAlchemy models

Document is the unit addressed by access control. Its content lives in
DocumentVersion rows; ``current_version_id`` always points at the highest
version number. Tags are stored as rows of ``document_tag`` so the set
semantics are enforced by the primary key.
"""

import enum
import uuid

from sqlalchemy import Column, Text, ForeignKey, Index, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..domain.documents.access_level import AccessLevel
from .base import Base, utcnow


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Document(Base):
    """Document model representing a versioned file owned by one user."""
    __tablename__ = "document"
    __table_args__ = (
        Index("ix_document_owner_id", "owner_id"),
        Index("ix_document_access_level", "access_level"),
        Index("ix_document_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    original_filename = Column(Text, nullable=False)
    access_level = Column(
        SQLEnum(AccessLevel, name="accesslevel", values_callable=_enum_values),
        nullable=False,
        default=AccessLevel.PRIVATE,
    )
    current_version_id = Column(
        Uuid,
        ForeignKey("document_version.id", use_alter=True, name="fk_document_current_version"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        foreign_keys="DocumentVersion.document_id",
        cascade="all, delete-orphan",
        order_by="DocumentVersion.version_number",
    )
    current_version = relationship(
        "DocumentVersion",
        foreign_keys=[current_version_id],
        post_update=True,
    )
    tag_rows = relationship(
        "DocumentTag",
        back_populates="document",
        cascade="all, delete-orphan",
    )

    @property
    def tags(self):
        """Tags as a sorted list (order is irrelevant, sorting keeps output stable)"""
        return sorted(row.tag for row in self.tag_rows)

    def set_tags(self, tags):
        """Replace the tag set, touching only rows that actually change.

        Returns:
            bool: True if the tag set changed
        """
        wanted = set(tags)
        current = {row.tag: row for row in self.tag_rows}
        if wanted == set(current):
            return False
        for tag, row in current.items():
            if tag not in wanted:
                self.tag_rows.remove(row)
        for tag in sorted(wanted - set(current)):
            self.tag_rows.append(DocumentTag(tag=tag))
        return True

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "original_filename": self.original_filename,
            "access_level": self.access_level.value if isinstance(self.access_level, enum.Enum) else self.access_level,
            "tags": self.tags,
            "current_version_id": str(self.current_version_id) if self.current_version_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DocumentTag(Base):
    """One tag attached to a document."""
    __tablename__ = "document_tag"
    __table_args__ = (
        Index("ix_document_tag_tag", "tag"),
    )

    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(Text, primary_key=True)

    document = relationship("Document", back_populates="tag_rows")
