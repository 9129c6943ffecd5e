"""Unit tests for the Document Store service

Covers store-then-enqueue, compensation when the queue is down, metadata
updates with their audit entries, deletion and the download checks.
"""

import io
from uuid import uuid4

import pytest
from sqlalchemy import select

from docvault.audit.service import ClientInfo
from docvault.documents.service import DocumentService, IncomingFile
from docvault.documents.versions import VersionStore
from docvault.domain.access import principal_for
from docvault.domain.documents.access_level import AccessLevel
from docvault.domain.documents.exceptions import (
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
from docvault.domain.documents.ports.object_storage_port import StoredFile
from docvault.domain.documents.version_status import VersionStatus
from docvault.models import AuditLog, Document, DocumentVersion, Notification

from conftest import PDF_BYTES


def incoming(filename="report.pdf", content=PDF_BYTES, mime_type="application/pdf"):
    return IncomingFile(stream=io.BytesIO(content), filename=filename, mime_type=mime_type, size_bytes=len(content))


@pytest.fixture
def service(db_session, storage, scan_queue):
    return DocumentService(db_session, storage, scan_queue, max_upload_size=1024 * 1024)


def audit_actions(db_session, document_id):
    return list(
        db_session.execute(
            select(AuditLog.action).where(AuditLog.document_id == document_id).order_by(AuditLog.created_at)
        ).scalars()
    )


def stored_files(storage):
    return [p for p in storage.root.rglob("*") if p.is_file()]


class TestCreateDocument:

    @pytest.mark.asyncio
    async def test_upload_is_pending_and_enqueued(self, service, db_session, storage, scan_queue, manager_user):
        document, version = await service.create_document(
            manager_user,
            incoming(),
            access_level=AccessLevel.TEAM,
            tags="finance, q3",
            client=ClientInfo(ip_address="10.0.0.1", user_agent="pytest"),
        )

        assert version.version_number == 1
        assert version.status == VersionStatus.PENDING_SCAN
        assert document.current_version_id == version.id
        assert document.tags == ["finance", "q3"]

        assert len(scan_queue.jobs) == 1
        assert scan_queue.jobs[0].version_id == version.id
        assert scan_queue.jobs[0].file_locator == version.storage_key
        assert await storage.file_exists(version.storage_key)

        entry = db_session.execute(select(AuditLog).where(AuditLog.document_id == document.id)).scalar_one()
        assert entry.action == "upload"
        assert entry.actor_id == manager_user.id
        assert entry.ip_address == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_team_upload_notifies_reports(self, service, db_session, manager_user, member_user, loner_user):
        document, _ = await service.create_document(manager_user, incoming("plan.pdf"), AccessLevel.TEAM)

        notifications = db_session.execute(select(Notification)).scalars().all()
        assert [n.user_id for n in notifications] == [member_user.id]
        assert notifications[0].message == 'maria uploaded a new team document: "plan.pdf"'
        assert notifications[0].link == f"/documents/{document.id}"

    @pytest.mark.asyncio
    async def test_private_upload_notifies_nobody(self, service, db_session, manager_user, member_user):
        await service.create_document(manager_user, incoming(), AccessLevel.PRIVATE)

        assert db_session.execute(select(Notification)).scalars().all() == []

    @pytest.mark.asyncio
    async def test_enqueue_failure_rolls_back_everything(
        self, service, db_session, storage, scan_queue, manager_user, member_user
    ):
        scan_queue.fail = True

        with pytest.raises(ScanEnqueueError):
            await service.create_document(manager_user, incoming(), AccessLevel.TEAM)

        db_session.expire_all()
        assert db_session.execute(select(Document)).scalars().all() == []
        assert db_session.execute(select(DocumentVersion)).scalars().all() == []
        assert db_session.execute(select(AuditLog)).scalars().all() == []
        assert db_session.execute(select(Notification)).scalars().all() == []
        assert stored_files(storage) == []

    @pytest.mark.asyncio
    async def test_invalid_upload_stores_nothing(self, service, db_session, storage, scan_queue, manager_user):
        with pytest.raises(InvalidUploadError):
            await service.create_document(manager_user, incoming(mime_type="text/plain"))

        assert scan_queue.jobs == []
        assert stored_files(storage) == []
        assert db_session.execute(select(Document)).scalars().all() == []


class TestCreateNewVersion:

    @pytest.mark.asyncio
    async def test_new_version_moves_pointer(self, service, db_session, manager_user):
        document, first = await service.create_document(manager_user, incoming())

        second = await service.create_new_version(principal_for(manager_user), document.id, incoming("v2.pdf"))

        db_session.expire_all()
        reloaded = db_session.get(Document, document.id)
        assert second.version_number == 2
        assert reloaded.current_version_id == second.id
        # Display name is fixed at creation
        assert reloaded.original_filename == "report.pdf"
        assert audit_actions(db_session, document.id) == ["upload", "version_upload"]

    @pytest.mark.asyncio
    async def test_enqueue_failure_restores_previous_version(
        self, service, db_session, storage, scan_queue, manager_user
    ):
        document, first = await service.create_document(manager_user, incoming())
        scan_queue.fail = True

        with pytest.raises(ScanEnqueueError):
            await service.create_new_version(principal_for(manager_user), document.id, incoming("v2.pdf"))

        db_session.expire_all()
        reloaded = db_session.get(Document, document.id)
        assert reloaded.current_version_id == first.id
        assert [v.version_number for v in reloaded.versions] == [1]
        assert [p.name for p in stored_files(storage)] == [first.storage_key.rsplit("/", 1)[1]]
        assert audit_actions(db_session, document.id) == ["upload"]

    @pytest.mark.asyncio
    async def test_version_number_race_is_a_conflict(
        self, service, db_session, storage, scan_queue, manager_user, monkeypatch
    ):
        document, first = await service.create_document(manager_user, incoming())
        document_id, first_id = document.id, first.id
        # A concurrent upload already committed the number this upload computes
        monkeypatch.setattr(service.versions, "next_version_number", lambda _document_id: 1)

        with pytest.raises(VersionConflictError):
            await service.create_new_version(principal_for(manager_user), document_id, incoming("v2.pdf"))

        db_session.expire_all()
        reloaded = db_session.get(Document, document_id)
        assert reloaded.current_version_id == first_id
        assert [v.version_number for v in reloaded.versions] == [1]
        assert len(stored_files(storage)) == 1
        assert len(scan_queue.jobs) == 1

    @pytest.mark.asyncio
    async def test_only_owner_or_admin(self, service, manager_user, member_user, admin_user):
        document, _ = await service.create_document(manager_user, incoming(), AccessLevel.TEAM)

        with pytest.raises(AccessDeniedError):
            await service.create_new_version(principal_for(member_user), document.id, incoming())

        version = await service.create_new_version(principal_for(admin_user), document.id, incoming())
        assert version.uploaded_by_id == admin_user.id

    @pytest.mark.asyncio
    async def test_unknown_document(self, service, manager_user):
        with pytest.raises(DocumentNotFoundError):
            await service.create_new_version(principal_for(manager_user), uuid4(), incoming())


class TestUpdateDocument:

    def test_access_level_round_trip_audits_each_change(self, service, db_session, document_factory, manager_user):
        document = document_factory(manager_user)
        principal = principal_for(manager_user)

        service.update_document(principal, document.id, access_level="team")
        service.update_document(principal, document.id, access_level="private")

        entries = db_session.execute(
            select(AuditLog).where(AuditLog.document_id == document.id).order_by(AuditLog.created_at)
        ).scalars().all()
        assert [e.action for e in entries] == ["access_change", "access_change"]
        assert [e.metadata_json for e in entries] == [
            {"old": "private", "new": "team"},
            {"old": "team", "new": "private"},
        ]
        assert db_session.get(Document, document.id).access_level == AccessLevel.PRIVATE

    def test_tags_only_writes_metadata_update(self, service, db_session, document_factory, manager_user):
        document = document_factory(manager_user, tags=["old"])

        updated = service.update_document(principal_for(manager_user), document.id, tags=["new", "q3"])

        assert updated.tags == ["new", "q3"]
        assert audit_actions(db_session, document.id) == ["metadata_update"]

    def test_level_and_tags_write_one_access_change(self, service, db_session, document_factory, manager_user):
        document = document_factory(manager_user)

        service.update_document(principal_for(manager_user), document.id, access_level="public", tags="a,b")

        assert audit_actions(db_session, document.id) == ["access_change"]

    def test_no_change_writes_nothing(self, service, db_session, document_factory, manager_user):
        document = document_factory(manager_user, access_level=AccessLevel.TEAM, tags=["a"])

        service.update_document(principal_for(manager_user), document.id, access_level="team", tags=["a"])

        assert audit_actions(db_session, document.id) == []

    def test_invalid_access_level(self, service, document_factory, manager_user):
        document = document_factory(manager_user)

        with pytest.raises(InvalidAccessLevelError):
            service.update_document(principal_for(manager_user), document.id, access_level="everyone")

    def test_manager_cannot_update_reports_document(self, service, document_factory, manager_user, member_user):
        document = document_factory(member_user, access_level=AccessLevel.TEAM)

        with pytest.raises(AccessDeniedError):
            service.update_document(principal_for(manager_user), document.id, access_level="public")


class TestDeleteDocument:

    @pytest.mark.asyncio
    async def test_admin_delete_removes_every_version_and_its_content(
        self, service, db_session, storage, manager_user, admin_user
    ):
        document, _ = await service.create_document(manager_user, incoming(), tags="a")
        for _ in range(2):
            await service.create_new_version(principal_for(manager_user), document.id, incoming())
        assert len(stored_files(storage)) == 3
        document_id = document.id

        await service.delete_document(principal_for(admin_user), document_id)

        db_session.expire_all()
        assert db_session.get(Document, document_id) is None
        assert db_session.execute(select(DocumentVersion)).scalars().all() == []
        assert stored_files(storage) == []
        # The audit trail outlives the document
        assert audit_actions(db_session, document_id) == ["upload", "version_upload", "version_upload", "delete"]

    @pytest.mark.asyncio
    async def test_delete_requires_owner_or_admin(self, service, document_factory, manager_user, loner_user):
        document = document_factory(manager_user, access_level=AccessLevel.PUBLIC)

        with pytest.raises(AccessDeniedError):
            await service.delete_document(principal_for(loner_user), document.id)


class TestDownloads:

    def test_check_order(self, service, document_factory, manager_user, loner_user):
        pending = document_factory(manager_user, status=VersionStatus.PENDING_SCAN)
        quarantined = document_factory(manager_user, status=VersionStatus.QUARANTINED)
        private = document_factory(manager_user)
        outsider = principal_for(loner_user)

        with pytest.raises(VersionNotFoundError):
            service.resolve_download(outsider, uuid4())
        # Scan state is reported before access is checked
        with pytest.raises(VersionPendingScanError):
            service.resolve_download(outsider, pending.current_version_id)
        with pytest.raises(VersionQuarantinedError):
            service.resolve_download(outsider, quarantined.current_version_id)
        with pytest.raises(AccessDeniedError):
            service.resolve_download(outsider, private.current_version_id)

    def test_manager_may_download_team_document_of_report(
        self, service, document_factory, manager_user, member_user
    ):
        document = document_factory(member_user, access_level=AccessLevel.TEAM)

        version, parent = service.resolve_download(principal_for(manager_user), document.current_version_id)

        assert parent.id == document.id

    @pytest.mark.asyncio
    async def test_open_download_streams_and_audits(self, service, db_session, manager_user):
        document, version = await service.create_document(manager_user, incoming())
        VersionStore(db_session).mark_available(version.id)
        db_session.commit()

        download = await service.open_download(principal_for(manager_user), version.id)
        try:
            assert download.stream.read() == PDF_BYTES
        finally:
            download.stream.close()

        assert download.filename == "report.pdf"
        assert download.mime_type == "application/pdf"
        assert audit_actions(db_session, document.id) == ["upload", "download"]

    def test_list_versions_newest_first(self, service, db_session, document_factory, manager_user, loner_user):
        document = document_factory(manager_user)
        service.versions.create_version(
            document,
            StoredFile(storage_key="k/v2", sha256="0" * 64, size_bytes=1, mime_type="application/pdf"),
            manager_user.id,
        )
        db_session.commit()

        versions = service.list_versions(principal_for(manager_user), document.id)
        assert [v.version_number for v in versions] == [2, 1]

        with pytest.raises(AccessDeniedError):
            service.list_versions(principal_for(loner_user), document.id)
