"""Pytest fixtures for DocVault.

Provides reusable test fixtures for:
- In-memory SQLite database session (tables created per test)
- Users for every role, including a Manager with one team member
- Local object storage under tmp_path, a recording scan queue and a fake scanner
- Authenticated test clients with JWT tokens

Usage:
    def test_listing(client_for, manager_user):
        response = client_for(manager_user).get("/api/v1/documents")
        assert response.status_code == 200
"""

import io
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Iterable, List, Optional

# Set environment variables BEFORE any docvault imports: the engine and the
# cached settings are created at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["VIRUS_SCAN_ENABLED"] = "true"
os.environ["LOG_JSON"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from docvault.auth.jwt import create_access_token
from docvault.database import get_db
from docvault.domain.documents.access_level import AccessLevel
from docvault.domain.documents.ports.scan_queue_port import ScanQueuePort
from docvault.domain.documents.version_status import VersionStatus
from docvault.domain.scanning import (
    MaliciousFileError,
    ScanJob,
    ScanReport,
    VirusScannerPort,
)
from docvault.infrastructure.queue import get_scan_queue
from docvault.infrastructure.storage import get_storage
from docvault.infrastructure.storage.local_storage_adapter import LocalStorageAdapter
from docvault.models import Base, Document, DocumentVersion, User

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\ntest content\n"

# One connection shared by every session so the in-memory database survives
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeScanQueue(ScanQueuePort):
    """Records enqueued jobs; set ``fail`` to simulate a broker outage."""

    def __init__(self):
        self.jobs: List[ScanJob] = []
        self.fail = False

    def enqueue(self, job: ScanJob) -> str:
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.jobs.append(job)
        return f"job-{len(self.jobs)}"


class FakeScanner(VirusScannerPort):
    """Scanner with a fixed verdict: clean, malicious or error."""

    name = "fake"

    def __init__(self, verdict: str = "clean"):
        self.verdict = verdict
        self.calls = []

    def scan(self, filename: str, content: bytes) -> ScanReport:
        self.calls.append((filename, content))
        if self.verdict == "malicious":
            raise MaliciousFileError("File is malicious. Flagged by 3 engines.")
        if self.verdict == "error":
            raise ConnectionError("scanner unreachable")
        return ScanReport(scanner=self.name)


@pytest.fixture(autouse=True)
def clear_stats_cache():
    from docvault.stats.router import stats_cache

    stats_cache.clear()
    yield
    stats_cache.clear()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh database for each test: tables created before, dropped after."""
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def _make_user(db: Session, username: str, role: str, manager: Optional[User] = None) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        role=role,
        manager_id=manager.id if manager else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin", "Admin")


@pytest.fixture
def manager_user(db_session: Session) -> User:
    return _make_user(db_session, "maria", "Manager")


@pytest.fixture
def other_manager(db_session: Session) -> User:
    return _make_user(db_session, "oscar", "Manager")


@pytest.fixture
def member_user(db_session: Session, manager_user: User) -> User:
    """A User on maria's team."""
    return _make_user(db_session, "tom", "User", manager=manager_user)


@pytest.fixture
def loner_user(db_session: Session) -> User:
    """A User on no team."""
    return _make_user(db_session, "lena", "User")


@pytest.fixture
def storage(tmp_path) -> LocalStorageAdapter:
    return LocalStorageAdapter(tmp_path / "storage")


@pytest.fixture
def scan_queue() -> FakeScanQueue:
    return FakeScanQueue()


@pytest.fixture
def document_factory(db_session: Session) -> Callable[..., Document]:
    """Create a document with one version directly in the database."""
    counter = {"n": 0}

    def create(
        owner: User,
        filename: str = "report.pdf",
        access_level: AccessLevel = AccessLevel.PRIVATE,
        status: VersionStatus = VersionStatus.AVAILABLE,
        tags: Iterable[str] = (),
        mime_type: str = "application/pdf",
        size_bytes: int = 1024,
    ) -> Document:
        counter["n"] += 1
        # Distinct, increasing timestamps keep "newest first" deterministic
        created_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"])
        document = Document(
            owner_id=owner.id,
            original_filename=filename,
            access_level=access_level,
            created_at=created_at,
            updated_at=created_at,
        )
        document.set_tags(tags)
        db_session.add(document)
        db_session.flush()

        version = DocumentVersion(
            document_id=document.id,
            version_number=1,
            storage_key=f"{owner.id}/2026/01/{secrets.token_hex(8)}-{filename}",
            mime_type=mime_type,
            size_bytes=size_bytes,
            uploaded_by_id=owner.id,
            status=status,
            created_at=created_at,
        )
        db_session.add(version)
        db_session.flush()
        document.current_version_id = version.id
        db_session.commit()
        db_session.refresh(document)
        return document

    return create


@pytest.fixture
def app(db_session: Session, storage: LocalStorageAdapter, scan_queue: FakeScanQueue):
    """FastAPI app wired to the test database, storage and queue."""
    from docvault.main import app as docvault_app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    docvault_app.dependency_overrides[get_db] = override_get_db
    docvault_app.dependency_overrides[get_storage] = lambda: storage
    docvault_app.dependency_overrides[get_scan_queue] = lambda: scan_queue

    yield docvault_app

    docvault_app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(app) -> TestClient:
    """Unauthenticated test client."""
    return TestClient(app)


@pytest.fixture
def client_for(app) -> Callable[[User], TestClient]:
    """Build a test client authenticated as the given user."""

    def build(user: User) -> TestClient:
        test_client = TestClient(app)
        test_client.headers.update(auth_headers(user))
        return test_client

    return build


@pytest.fixture
def run_scans(db_session: Session, storage: LocalStorageAdapter, scan_queue: FakeScanQueue):
    """Process every queued scan job with a fake scanner of the given verdict."""
    from docvault.workers.scan_worker import process_scan_job

    def run(verdict: str = "clean") -> List[str]:
        scanner = FakeScanner(verdict)
        outcomes = [
            process_scan_job(job, storage, scanner, session_factory=TestingSessionLocal)
            for job in scan_queue.jobs
        ]
        scan_queue.jobs.clear()
        db_session.expire_all()
        return outcomes

    return run


def pdf_upload(filename: str = "report.pdf", content: bytes = PDF_BYTES, mime_type: str = "application/pdf"):
    """Multipart ``files`` argument for the upload endpoints."""
    return {"file": (filename, io.BytesIO(content), mime_type)}
