"""Document Store - owns Document rows and the current-version pointer.

Every upload follows store-then-enqueue:

1. Content is written to object storage
2. Document / version rows are committed (version in ``pending_scan``)
3. The scan job is enqueued
4. Audit entry and notifications are committed

If step 3 fails the rows from step 2 are compensated (new version deleted,
pointer restored, first-upload document deleted, content removed) and
ScanEnqueueError is raised. Nothing of a rolled-back upload is ever visible:
the version was still ``pending_scan`` while it existed.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..audit.service import ClientInfo, log_document_event
from ..domain.access import (
    Principal,
    can_access,
    can_modify,
    load_team_directory,
)
from ..domain.documents.access_level import AccessLevel, parse_access_level
from ..domain.documents.exceptions import (
    AccessDeniedError,
    DocumentNotFoundError,
    InvalidAccessLevelError,
    InvalidUploadError,
    ScanEnqueueError,
    VersionConflictError,
    VersionNotFoundError,
    VersionPendingScanError,
    VersionQuarantinedError,
)
from ..domain.documents.ports.object_storage_port import ObjectStoragePort, StoredFile
from ..domain.documents.ports.scan_queue_port import ScanQueuePort
from ..domain.documents.validation import (
    is_supported_mime_type,
    parse_tags,
    validate_file_size,
    validate_filename,
)
from ..domain.documents.version_status import VersionStatus
from ..domain.scanning.jobs import ScanJob
from ..models.audit_log import AuditAction
from ..models.base import utcnow
from ..models.document import Document
from ..models.document_version import DocumentVersion
from ..models.user import User
from ..notifications.service import notify_team_of_new_document
from ..observability.metrics import (
    downloads_total,
    scan_enqueue_failures_total,
    uploads_accepted_total,
)
from .versions import VersionStore

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """An uploaded file as received by the HTTP layer."""
    stream: BinaryIO
    filename: Optional[str]
    mime_type: Optional[str]
    size_bytes: int


@dataclass
class Download:
    """An opened download: stream plus the headers the response needs."""
    stream: BinaryIO
    filename: str
    mime_type: str
    size_bytes: int
    version: DocumentVersion


def validate_upload(incoming: IncomingFile, max_size: int) -> None:
    """Reject uploads before anything is stored.

    Raises:
        InvalidUploadError: Missing/invalid filename, unsupported type, empty or too large
    """
    is_valid, error = validate_filename(incoming.filename)
    if not is_valid:
        raise InvalidUploadError(error)

    if not is_supported_mime_type(incoming.mime_type):
        raise InvalidUploadError(f"Unsupported file type: {incoming.mime_type}")

    is_valid, error = validate_file_size(incoming.size_bytes, max_size)
    if not is_valid:
        raise InvalidUploadError(error)


class DocumentService:
    """Document lifecycle operations for one request.

    Args:
        db: Request-scoped session; the service commits its own units of work
        storage: Object storage adapter
        scan_queue: Scan job queue
        max_upload_size: Upload size limit in bytes
    """

    def __init__(
        self,
        db: Session,
        storage: ObjectStoragePort,
        scan_queue: ScanQueuePort,
        max_upload_size: int,
    ):
        self.db = db
        self.storage = storage
        self.scan_queue = scan_queue
        self.max_upload_size = max_upload_size
        self.versions = VersionStore(db)

    # -- lookups -----------------------------------------------------------

    def _get_document(self, document_id: UUID) -> Document:
        document = self.db.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    def _get_modifiable(self, principal: Principal, document_id: UUID) -> Document:
        document = self._get_document(document_id)
        if not can_modify(principal, document):
            raise AccessDeniedError("Only the owner or an Admin can modify this document")
        return document

    def _check_readable(self, principal: Principal, document: Document) -> None:
        directory = load_team_directory(self.db, [document.owner_id])
        if not can_access(principal, document, directory):
            raise AccessDeniedError("You do not have access to this document")

    # -- uploads -----------------------------------------------------------

    async def _store(self, incoming: IncomingFile, owner_id: UUID) -> StoredFile:
        validate_upload(incoming, self.max_upload_size)
        try:
            return await self.storage.store_file(
                file=incoming.stream,
                owner_id=owner_id,
                filename=incoming.filename,
                mime_type=incoming.mime_type,
            )
        except ValueError as e:
            raise InvalidUploadError(str(e))

    async def _discard_content(self, storage_key: str) -> None:
        try:
            await self.storage.delete_file(storage_key)
        except Exception:
            logger.exception("Failed to remove stored content", extra={"storage_key": storage_key})

    def _enqueue_scan(self, version: DocumentVersion) -> bool:
        job = ScanJob(version_id=version.id, file_locator=version.storage_key)
        try:
            self.scan_queue.enqueue(job)
        except Exception:
            scan_enqueue_failures_total.inc()
            logger.exception("Failed to enqueue scan job", extra={"version_id": str(version.id)})
            return False
        return True

    async def create_document(
        self,
        owner: User,
        incoming: IncomingFile,
        access_level: AccessLevel = AccessLevel.PRIVATE,
        tags: Union[str, Iterable[str], None] = None,
        client: Optional[ClientInfo] = None,
    ) -> Tuple[Document, DocumentVersion]:
        """Create a document and its first version (``pending_scan``).

        Raises:
            InvalidUploadError: If the file fails validation
            ScanEnqueueError: If the scan job could not be enqueued
        """
        stored = await self._store(incoming, owner.id)

        try:
            document = Document(
                owner_id=owner.id,
                original_filename=incoming.filename,
                access_level=access_level,
            )
            document.set_tags(parse_tags(tags))
            self.db.add(document)
            self.db.flush()
            version = self.versions.create_version(document, stored, owner.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            await self._discard_content(stored.storage_key)
            raise

        if not self._enqueue_scan(version):
            await self._compensate(document.id, version.id, None, stored.storage_key, first_upload=True)
            raise ScanEnqueueError("Upload could not be queued for scanning; nothing was saved")

        log_document_event(self.db, AuditAction.UPLOAD, document.id, actor_id=owner.id, client=client)
        notify_team_of_new_document(self.db, document, owner)
        self.db.commit()

        uploads_accepted_total.labels(kind="document").inc()
        logger.info(
            "Document accepted for scanning",
            extra={"document_id": str(document.id), "version_id": str(version.id), "user_id": str(owner.id)},
        )
        return document, version

    async def create_new_version(
        self,
        principal: Principal,
        document_id: UUID,
        incoming: IncomingFile,
        client: Optional[ClientInfo] = None,
    ) -> DocumentVersion:
        """Add a version to an existing document (owner or Admin).

        Raises:
            DocumentNotFoundError, AccessDeniedError, InvalidUploadError, ScanEnqueueError
            VersionConflictError: A concurrent upload took the same version number
        """
        document = self._get_modifiable(principal, document_id)
        previous_version_id = document.current_version_id

        stored = await self._store(incoming, document.owner_id)

        try:
            version = self.versions.create_version(document, stored, principal.user_id)
            self.db.commit()
        except IntegrityError as e:
            # The unique (document_id, version_number) constraint lost a race
            self.db.rollback()
            await self._discard_content(stored.storage_key)
            logger.warning("Concurrent version upload rejected", extra={"document_id": str(document_id)})
            raise VersionConflictError(
                "Another version of this document was uploaded at the same time; please retry"
            ) from e
        except Exception:
            self.db.rollback()
            await self._discard_content(stored.storage_key)
            raise

        if not self._enqueue_scan(version):
            await self._compensate(document.id, version.id, previous_version_id, stored.storage_key)
            raise ScanEnqueueError("New version could not be queued for scanning; nothing was saved")

        log_document_event(
            self.db,
            AuditAction.VERSION_UPLOAD,
            document.id,
            actor_id=principal.user_id,
            metadata={"version_number": version.version_number},
            client=client,
        )
        self.db.commit()

        uploads_accepted_total.labels(kind="version").inc()
        logger.info(
            "Version accepted for scanning",
            extra={"document_id": str(document.id), "version_id": str(version.id)},
        )
        return version

    async def _compensate(
        self,
        document_id: UUID,
        version_id: UUID,
        previous_version_id: Optional[UUID],
        storage_key: str,
        first_upload: bool = False,
    ) -> None:
        """Undo a committed upload whose scan job was never enqueued."""
        try:
            document = self.db.get(Document, document_id)
            version = self.db.get(DocumentVersion, version_id)
            if document is not None:
                document.current_version_id = previous_version_id
                self.db.flush()
                if first_upload:
                    self.db.delete(document)
                elif version is not None:
                    document.versions.remove(version)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to compensate upload",
                extra={"document_id": str(document_id), "version_id": str(version_id)},
            )
        await self._discard_content(storage_key)

    # -- metadata ----------------------------------------------------------

    def update_document(
        self,
        principal: Principal,
        document_id: UUID,
        access_level: Optional[str] = None,
        tags: Union[str, Iterable[str], None] = None,
        client: Optional[ClientInfo] = None,
    ) -> Document:
        """Change access level and/or tags (owner or Admin).

        Writes at most one audit entry: ``access_change`` when the level
        changed, otherwise ``metadata_update`` when the tag set changed.

        Raises:
            DocumentNotFoundError, AccessDeniedError, InvalidAccessLevelError
        """
        document = self._get_modifiable(principal, document_id)

        new_level = None
        if access_level is not None:
            try:
                new_level = parse_access_level(access_level)
            except ValueError as e:
                raise InvalidAccessLevelError(str(e))

        old_level = AccessLevel(document.access_level)
        level_changed = new_level is not None and new_level is not old_level
        if level_changed:
            document.access_level = new_level

        tags_changed = False
        if tags is not None:
            tags_changed = document.set_tags(parse_tags(tags))

        if not (level_changed or tags_changed):
            return document

        document.updated_at = utcnow()
        if level_changed:
            log_document_event(
                self.db,
                AuditAction.ACCESS_CHANGE,
                document.id,
                actor_id=principal.user_id,
                metadata={"old": old_level.value, "new": new_level.value},
                client=client,
            )
        else:
            log_document_event(
                self.db,
                AuditAction.METADATA_UPDATE,
                document.id,
                actor_id=principal.user_id,
                metadata={"tags": document.tags},
                client=client,
            )
        self.db.commit()
        return document

    async def delete_document(
        self,
        principal: Principal,
        document_id: UUID,
        client: Optional[ClientInfo] = None,
    ) -> None:
        """Delete a document, all its versions and their content (owner or Admin).

        Raises:
            DocumentNotFoundError, AccessDeniedError
        """
        document = self._get_modifiable(principal, document_id)
        storage_keys = [version.storage_key for version in document.versions]

        document.current_version_id = None
        self.db.flush()
        self.db.delete(document)
        log_document_event(
            self.db,
            AuditAction.DELETE,
            document_id,
            actor_id=principal.user_id,
            metadata={"filename": document.original_filename, "versions": len(storage_keys)},
            client=client,
        )
        self.db.commit()

        # Content goes only after the rows are gone
        for key in storage_keys:
            await self._discard_content(key)

        logger.info("Document deleted", extra={"document_id": str(document_id)})

    # -- reads -------------------------------------------------------------

    def list_versions(self, principal: Principal, document_id: UUID) -> List[DocumentVersion]:
        """Version history, newest first, including unresolved versions."""
        document = self._get_document(document_id)
        self._check_readable(principal, document)
        return list(
            self.db.execute(
                select(DocumentVersion)
                .where(DocumentVersion.document_id == document_id)
                .order_by(DocumentVersion.version_number.desc())
            ).scalars()
        )

    def resolve_download(self, principal: Principal, version_id: UUID) -> Tuple[DocumentVersion, Document]:
        """Check that a version may be downloaded by the principal.

        Checks run in this order: version exists, scanned clean, not
        quarantined, parent exists, access granted.

        Raises:
            VersionNotFoundError, VersionPendingScanError, VersionQuarantinedError,
            DocumentNotFoundError, AccessDeniedError
        """
        version = self.db.get(DocumentVersion, version_id)
        if version is None:
            raise VersionNotFoundError(f"Version {version_id} not found")

        status = VersionStatus(version.status)
        if status is VersionStatus.PENDING_SCAN:
            raise VersionPendingScanError("File is pending virus scan and is not yet available for download")
        if status is VersionStatus.QUARANTINED:
            raise VersionQuarantinedError("This file has been quarantined and is not available for download")

        document = self.db.get(Document, version.document_id)
        if document is None:
            raise DocumentNotFoundError("Parent document not found")

        self._check_readable(principal, document)
        return version, document

    async def open_download(
        self,
        principal: Principal,
        version_id: UUID,
        client: Optional[ClientInfo] = None,
    ) -> Download:
        """Resolve, open and audit a download.

        Raises:
            Everything resolve_download raises, plus FileNotFoundError when the
            content is missing from storage
        """
        version, document = self.resolve_download(principal, version_id)
        stream = await self.storage.retrieve_file(version.storage_key)

        try:
            log_document_event(
                self.db,
                AuditAction.DOWNLOAD,
                document.id,
                actor_id=principal.user_id,
                metadata={"version_id": str(version.id), "version_number": version.version_number},
                client=client,
            )
            self.db.commit()
        except Exception:
            stream.close()
            raise

        downloads_total.inc()
        return Download(
            stream=stream,
            filename=document.original_filename,
            mime_type=version.mime_type,
            size_bytes=version.size_bytes,
            version=version,
        )
