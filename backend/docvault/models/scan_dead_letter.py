"""ScanDeadLetter SQLAlchemy model

Scan jobs that exhausted their retry budget land here for operator
inspection. The referenced version stays in ``pending_scan``.
"""

import uuid

from sqlalchemy import Column, Text, Integer, Index, DateTime, Uuid

from .base import Base, PortableJSONB, utcnow


class ScanDeadLetter(Base):
    """One dead-lettered scan job."""
    __tablename__ = "scan_dead_letter"
    __table_args__ = (
        Index("ix_scan_dead_letter_version_id", "version_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id = Column(Text, nullable=True)
    version_id = Column(Uuid, nullable=True)
    file_locator = Column(Text, nullable=True)
    payload_json = Column(PortableJSONB, nullable=False)
    error = Column(Text, nullable=False)
    retries = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": str(self.id),
            "task_id": self.task_id,
            "version_id": str(self.version_id) if self.version_id else None,
            "file_locator": self.file_locator,
            "payload": self.payload_json,
            "error": self.error,
            "retries": self.retries,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
