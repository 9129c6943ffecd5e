"""Dashboard statistics for Admins."""

from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.audit_log import AuditAction, AuditLog
from ..models.document import Document
from ..models.document_version import DocumentVersion
from ..models.scan_dead_letter import ScanDeadLetter
from ..models.user import User

MOST_DOWNLOADED_LIMIT = 5


def _grouped(db: Session, column) -> Dict[str, int]:
    rows = db.execute(select(column, func.count()).group_by(column)).all()
    return {getattr(key, "value", key): count for key, count in rows}


def compute_dashboard_stats(db: Session) -> Dict[str, Any]:
    """Aggregate user, document, scan and activity counts."""
    total_size = db.execute(select(func.coalesce(func.sum(DocumentVersion.size_bytes), 0))).scalar_one()

    by_mime_type = dict(
        db.execute(
            select(DocumentVersion.mime_type, func.count())
            .join(Document, Document.current_version_id == DocumentVersion.id)
            .group_by(DocumentVersion.mime_type)
        ).all()
    )

    downloads = func.count().label("downloads")
    most_downloaded = db.execute(
        select(Document.original_filename, downloads)
        .select_from(AuditLog)
        .join(Document, Document.id == AuditLog.document_id)
        .where(AuditLog.action == AuditAction.DOWNLOAD.value)
        .group_by(Document.id, Document.original_filename)
        .order_by(downloads.desc())
        .limit(MOST_DOWNLOADED_LIMIT)
    ).all()

    return {
        "users": {
            "total": db.execute(select(func.count()).select_from(User)).scalar_one(),
            "byRole": _grouped(db, User.role),
        },
        "documents": {
            "total": db.execute(select(func.count()).select_from(Document)).scalar_one(),
            "totalSizeInBytes": int(total_size or 0),
            "byAccessLevel": _grouped(db, Document.access_level),
            "byMimeType": by_mime_type,
        },
        "scanning": {
            "versionsByStatus": _grouped(db, DocumentVersion.status),
            "deadLettered": db.execute(select(func.count()).select_from(ScanDeadLetter)).scalar_one(),
        },
        "activity": {
            "byAction": _grouped(db, AuditLog.action),
            "mostDownloaded": [
                {"document": filename, "downloadCount": count} for filename, count in most_downloaded
            ],
        },
    }
