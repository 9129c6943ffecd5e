"""SQLAlchemy models for DocVault"""

from .base import Base
from .user import User
from .document import Document, DocumentTag
from .document_version import DocumentVersion
from .audit_log import AuditLog, AuditAction
from .notification import Notification
from .scan_dead_letter import ScanDeadLetter
from ..domain.documents.access_level import AccessLevel
from ..domain.documents.version_status import VersionStatus

__all__ = [
    "Base",
    "User",
    "Document",
    "DocumentTag",
    "DocumentVersion",
    "AuditLog",
    "AuditAction",
    "Notification",
    "ScanDeadLetter",
    "AccessLevel",
    "VersionStatus",
]
