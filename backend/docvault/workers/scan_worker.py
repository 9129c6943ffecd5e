"""Scan worker - Celery task that resolves a version's scan status.

Per job:
1. Load the version in a short-lived session; skip it if it no longer
   exists or is already resolved
2. Read the content and call the scanner with no session held
3. clean -> mark_available
   malicious -> mark_quarantined and delete the stored content (never retried)
   anything else, database errors included -> TransientScanError,
   retried with exponential backoff
   A malicious verdict only deletes content if the quarantine transition
   applied; a version already made available keeps its content
4. Once the retry budget is spent the task's failure hook dead-letters the job

Delivery is at-least-once. Re-running a job for a resolved version is a
no-op thanks to the Version Store guard.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import UUID

from celery import Task, shared_task
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import SessionLocal
from ..documents.versions import VersionStore
from ..domain.documents.ports.object_storage_port import ObjectStoragePort
from ..domain.documents.version_status import VersionStatus
from ..domain.scanning import (
    MaliciousFileError,
    ScanJob,
    ScanOutcome,
    TransientScanError,
    VirusScannerPort,
    classify_exception,
)
from ..infrastructure.scanning import build_scanner
from ..infrastructure.storage import get_storage
from ..models import DocumentVersion, ScanDeadLetter
from ..observability.metrics import (
    scan_dead_letters_total,
    scan_duration_seconds,
    scan_outcomes_total,
)
from ..observability.request_id import set_request_id
from .celery_app import SCAN_TASK_NAME

logger = logging.getLogger(__name__)

SKIPPED = "skipped"

SessionFactory = Callable[[], Session]


def _load_pending(session_factory: SessionFactory, version_id: UUID) -> Optional[Tuple[str, str]]:
    """(filename, storage_key) of a version still awaiting its scan, else None.

    Raises:
        TransientScanError: If the database is unavailable
    """
    session = session_factory()
    try:
        version = session.get(DocumentVersion, version_id)
        if version is None:
            logger.info("Version no longer exists, skipping scan", extra={"version_id": str(version_id)})
            return None
        if version.status != VersionStatus.PENDING_SCAN:
            logger.info(
                "Version already resolved, skipping scan",
                extra={"version_id": str(version_id), "status": version.status.value},
            )
            return None
        return version.document.original_filename, version.storage_key
    except SQLAlchemyError as e:
        raise TransientScanError(f"Could not load version: {type(e).__name__}: {e}") from e
    finally:
        session.close()


def _read_content(storage: ObjectStoragePort, storage_key: str) -> bytes:
    async def read() -> bytes:
        stream = await storage.retrieve_file(storage_key)
        try:
            return stream.read()
        finally:
            stream.close()

    return asyncio.run(read())


def _resolve(session_factory: SessionFactory, version_id: UUID, reason: Optional[str] = None) -> bool:
    """Persist the verdict; False if the version was no longer pending.

    Raises:
        TransientScanError: If the database is unavailable
    """
    session = session_factory()
    try:
        store = VersionStore(session)
        if reason is None:
            changed = store.mark_available(version_id)
        else:
            changed = store.mark_quarantined(version_id, reason)
        session.commit()
        return changed
    except SQLAlchemyError as e:
        session.rollback()
        raise TransientScanError(f"Could not record verdict: {type(e).__name__}: {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def process_scan_job(
    job: ScanJob,
    storage: ObjectStoragePort,
    scanner: VirusScannerPort,
    session_factory: SessionFactory = SessionLocal,
) -> str:
    """Scan one version and record the verdict.

    Returns:
        str: "clean", "malicious" or "skipped"

    Raises:
        TransientScanError: For every failure other than a malicious verdict,
            including database errors while loading or resolving the version
    """
    pending = _load_pending(session_factory, job.version_id)
    if pending is None:
        scan_outcomes_total.labels(outcome=SKIPPED).inc()
        return SKIPPED
    filename, storage_key = pending
    if job.file_locator != storage_key:
        logger.warning(
            "Job locator differs from stored key, using stored key",
            extra={"version_id": str(job.version_id), "storage_key": storage_key},
        )

    verdict: Optional[MaliciousFileError] = None
    started = time.monotonic()
    try:
        content = _read_content(storage, storage_key)
        scanner.scan(filename, content)
    except Exception as e:
        outcome = classify_exception(e)
        scan_outcomes_total.labels(outcome=outcome.value).inc()
        if outcome is not ScanOutcome.MALICIOUS:
            if isinstance(e, TransientScanError):
                raise
            raise TransientScanError(f"{type(e).__name__}: {e}") from e
        verdict = e
    finally:
        scan_duration_seconds.observe(time.monotonic() - started)

    if verdict is not None:
        logger.error(
            f"Malicious file detected: {verdict.reason}",
            extra={"version_id": str(job.version_id), "storage_key": storage_key},
        )
        if _resolve(session_factory, job.version_id, reason=verdict.reason):
            _delete_content(storage, storage_key)
        else:
            # Another delivery resolved the version first; its content may be live
            logger.warning(
                "Version no longer pending, keeping its content",
                extra={"version_id": str(job.version_id), "storage_key": storage_key},
            )
        return ScanOutcome.MALICIOUS.value

    scan_outcomes_total.labels(outcome=ScanOutcome.CLEAN.value).inc()
    _resolve(session_factory, job.version_id)
    return ScanOutcome.CLEAN.value


def _delete_content(storage: ObjectStoragePort, storage_key: str) -> None:
    # The version is already quarantined and can never be downloaded, so a
    # failed delete leaves an orphan object rather than a reachable one
    try:
        asyncio.run(storage.delete_file(storage_key))
    except Exception:
        logger.exception("Failed to delete quarantined content", extra={"storage_key": storage_key})


def record_dead_letter(
    payload: Dict[str, Any],
    error: BaseException,
    task_id: Optional[str] = None,
    retries: int = 0,
    session_factory: SessionFactory = SessionLocal,
) -> ScanDeadLetter:
    """Persist a scan job that will not be retried any more."""
    version_id = None
    file_locator = None
    if isinstance(payload, dict):
        try:
            version_id = UUID(str(payload.get("version_id")))
        except ValueError:
            version_id = None
        file_locator = payload.get("file_locator")

    session = session_factory()
    try:
        entry = ScanDeadLetter(
            task_id=task_id,
            version_id=version_id,
            file_locator=file_locator,
            payload_json=payload if isinstance(payload, dict) else {"raw": repr(payload)},
            error=f"{type(error).__name__}: {error}",
            retries=retries,
        )
        session.add(entry)
        session.commit()
        session.refresh(entry)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    scan_dead_letters_total.inc()
    logger.error(
        "Scan job dead-lettered",
        extra={
            "task_id": task_id,
            "version_id": str(version_id) if version_id else None,
            "retries": retries,
        },
    )
    return entry


class ScanTask(Task):
    """Task base that dead-letters jobs which finally failed."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        payload = args[0] if args else kwargs.get("payload")
        record_dead_letter(payload, exc, task_id=task_id, retries=self.request.retries)


settings = get_settings()


@shared_task(
    name=SCAN_TASK_NAME,
    base=ScanTask,
    bind=True,
    autoretry_for=(TransientScanError,),
    retry_backoff=True,
    retry_backoff_max=settings.SCAN_RETRY_BACKOFF_MAX,
    retry_jitter=True,
    max_retries=settings.SCAN_MAX_RETRIES,
    acks_late=True,
)
def scan_version_task(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Scan one document version (background task).

    Args:
        payload: ScanJob payload (schema_version, version_id, file_locator)

    Raises:
        TransientScanError: Retried by Celery until the budget is spent
        pydantic.ValidationError: Unknown payload schema, dead-lettered at once
    """
    set_request_id(self.request.id)
    job = ScanJob.from_payload(payload)

    outcome = process_scan_job(job, get_storage(), build_scanner())
    return {"version_id": str(job.version_id), "outcome": outcome}
