"""AuditLog SQLAlchemy model"""

import enum
import uuid

from sqlalchemy import Column, Text, ForeignKey, Index, DateTime, Uuid

from .base import Base, PortableJSONB, utcnow


class AuditAction(str, enum.Enum):
    """Mutating (and download) actions recorded against a document"""
    UPLOAD = "upload"
    VERSION_UPLOAD = "version_upload"
    DELETE = "delete"
    ACCESS_CHANGE = "access_change"
    METADATA_UPDATE = "metadata_update"
    DOWNLOAD = "download"


class AuditLog(Base):
    """AuditLog model for immutable document activity logging.

    Entries are append-only and should never be updated or deleted.
    ``document_id`` deliberately has no foreign key so that entries outlive
    the document they describe.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_document_id", "document_id"),
        Index("ix_audit_log_actor_id_created_at", "actor_id", "created_at"),
        Index("ix_audit_log_action", "action"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    document_id = Column(Uuid, nullable=False)
    action = Column(Text, nullable=False)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "document_id": str(self.document_id),
            "action": self.action,
            "metadata": self.metadata_json,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat(),
        }
