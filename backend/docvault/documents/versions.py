"""Version Store - the only writer of DocumentVersion.status.

Status transitions are applied with a conditional UPDATE that matches only
rows still in ``pending_scan``. A duplicate or late scan callback therefore
updates zero rows and is reported as a no-op instead of overwriting a
completed transition.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..domain.documents.ports.object_storage_port import StoredFile
from ..domain.documents.version_status import VersionStatus, can_transition
from ..models.base import utcnow
from ..models.document import Document
from ..models.document_version import DocumentVersion
from ..observability.metrics import status_transitions_skipped_total

logger = logging.getLogger(__name__)


class VersionStore:
    """Creates versions and resolves their scan status."""

    def __init__(self, db: Session):
        self.db = db

    def next_version_number(self, document_id: UUID) -> int:
        current_max = self.db.execute(
            select(func.max(DocumentVersion.version_number)).where(
                DocumentVersion.document_id == document_id
            )
        ).scalar()
        return (current_max or 0) + 1

    def create_version(self, document: Document, stored_file: StoredFile, uploader_id: UUID) -> DocumentVersion:
        """Add a new ``pending_scan`` version and point the document at it.

        The caller owns the transaction; nothing is committed here.
        """
        if document.id is None:
            self.db.flush()

        version = DocumentVersion(
            document_id=document.id,
            version_number=self.next_version_number(document.id),
            storage_key=stored_file.storage_key,
            mime_type=stored_file.mime_type,
            size_bytes=stored_file.size_bytes,
            uploaded_by_id=uploader_id,
            status=VersionStatus.PENDING_SCAN,
        )
        self.db.add(version)
        self.db.flush()

        document.current_version_id = version.id
        document.updated_at = utcnow()
        self.db.flush()

        logger.info(
            "Created version",
            extra={
                "document_id": str(document.id),
                "version_id": str(version.id),
                "version_number": version.version_number,
            },
        )
        return version

    def get(self, version_id: UUID) -> Optional[DocumentVersion]:
        return self.db.get(DocumentVersion, version_id)

    def mark_available(self, version_id: UUID) -> bool:
        """pending_scan -> available. Returns False when nothing changed."""
        return self._resolve(version_id, VersionStatus.AVAILABLE)

    def mark_quarantined(self, version_id: UUID, reason: str) -> bool:
        """pending_scan -> quarantined, recording the detection reason."""
        return self._resolve(version_id, VersionStatus.QUARANTINED, detail=reason)

    def _resolve(self, version_id: UUID, target: VersionStatus, detail: Optional[str] = None) -> bool:
        # Only pending_scan rows are eligible; the WHERE clause is the guard
        if not can_transition(VersionStatus.PENDING_SCAN, target):
            raise ValueError(f"Cannot resolve a version to {target.value}")

        values = {"status": target, "scanned_at": utcnow()}
        if detail is not None:
            values["scan_detail"] = detail

        result = self.db.execute(
            update(DocumentVersion)
            .where(
                DocumentVersion.id == version_id,
                DocumentVersion.status == VersionStatus.PENDING_SCAN,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            current = self.db.execute(
                select(DocumentVersion.status).where(DocumentVersion.id == version_id)
            ).scalar()
            logger.warning(
                "Skipped status transition",
                extra={
                    "version_id": str(version_id),
                    "target_status": target.value,
                    "current_status": current.value if current is not None else None,
                },
            )
            status_transitions_skipped_total.labels(target=target.value).inc()
            return False

        # Loaded instances still carry the old status
        loaded = self.db.identity_map.get(self.db.identity_key(DocumentVersion, version_id))
        if loaded is not None:
            self.db.expire(loaded)

        logger.info(
            "Version status resolved",
            extra={"version_id": str(version_id), "status": target.value},
        )
        return True
