"""DocumentVersion SQLAlchemy model

Each upload produces one version. Versions start in ``pending_scan`` and are
resolved exactly once by the scan pipeline.
"""

import enum
import uuid

from sqlalchemy import (
    Column, Text, ForeignKey, BigInteger, Integer, Index, UniqueConstraint,
    DateTime, Uuid, Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from ..domain.documents.version_status import VersionStatus
from .base import Base, utcnow


class DocumentVersion(Base):
    """A single uploaded revision of a document."""
    __tablename__ = "document_version"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_version_number"),
        Index("ix_document_version_document_id", "document_id"),
        Index("ix_document_version_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    storage_key = Column(Text, nullable=False, unique=True)
    mime_type = Column(Text, nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    uploaded_by_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    status = Column(
        SQLEnum(VersionStatus, name="versionstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VersionStatus.PENDING_SCAN,
    )
    scan_detail = Column(Text, nullable=True)  # Detection reason when quarantined
    scanned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    document = relationship("Document", back_populates="versions", foreign_keys=[document_id])
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id])

    def to_dict(self):
        """Convert version to dictionary representation (storage key excluded)"""
        return {
            "id": str(self.id),
            "document_id": str(self.document_id),
            "version_number": self.version_number,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "uploaded_by": self.uploaded_by.to_summary() if self.uploaded_by else None,
            "scanned_at": self.scanned_at.isoformat() if self.scanned_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
