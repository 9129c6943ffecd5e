"""Document API endpoints.

Uploads return 202: the content is stored and queued for a virus scan and
becomes downloadable (and listed) only once the scan finds it clean.
"""

import logging
from typing import Annotated, Optional
from urllib.parse import quote
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..audit.service import client_info
from ..auth.dependencies import CurrentPrincipal, require_role
from ..auth.roles import UserRole
from ..config import get_settings
from ..database import get_db
from ..domain.documents.access_level import coerce_access_level
from ..domain.documents.exceptions import (
    AccessDeniedError,
    DocumentError,
    DocumentNotFoundError,
    InvalidAccessLevelError,
    InvalidUploadError,
    ScanEnqueueError,
    VersionConflictError,
    VersionNotFoundError,
    VersionPendingScanError,
    VersionQuarantinedError,
)
from ..domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError
from ..domain.documents.ports.scan_queue_port import ScanQueuePort
from ..infrastructure.queue import get_scan_queue
from ..infrastructure.storage import get_storage
from ..models.user import User
from ..pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .queries import list_documents, search_documents
from .schemas import (
    DocumentUpdateRequest,
    DocumentUpdateResponse,
    UploadAcceptedResponse,
    VersionAcceptedResponse,
    VersionHistoryResponse,
)
from .service import DocumentService, IncomingFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])

_STATUS_FOR_ERROR = {
    DocumentNotFoundError: status.HTTP_404_NOT_FOUND,
    VersionNotFoundError: status.HTTP_404_NOT_FOUND,
    AccessDeniedError: status.HTTP_403_FORBIDDEN,
    VersionPendingScanError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    VersionQuarantinedError: status.HTTP_410_GONE,
    InvalidAccessLevelError: status.HTTP_400_BAD_REQUEST,
    InvalidUploadError: status.HTTP_400_BAD_REQUEST,
    ScanEnqueueError: status.HTTP_503_SERVICE_UNAVAILABLE,
    VersionConflictError: status.HTTP_409_CONFLICT,
}


def to_http_exception(exc: DocumentError) -> HTTPException:
    """Translate a domain error into the HTTP response it stands for."""
    code = _STATUS_FOR_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(exc))


def get_document_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStoragePort, Depends(get_storage)],
    scan_queue: Annotated[ScanQueuePort, Depends(get_scan_queue)],
) -> DocumentService:
    return DocumentService(db, storage, scan_queue, get_settings().MAX_UPLOAD_SIZE_BYTES)


Service = Annotated[DocumentService, Depends(get_document_service)]


def _incoming(file: UploadFile) -> IncomingFile:
    stream = file.file
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return IncomingFile(stream=stream, filename=file.filename, mime_type=file.content_type, size_bytes=size)


def _storage_unavailable(exc: StorageError) -> HTTPException:
    logger.error(f"Storage failure: {exc}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Document storage is temporarily unavailable",
    )


@router.post("/upload", response_model=UploadAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_document(
    request: Request,
    service: Service,
    current_user: Annotated[User, Depends(require_role(UserRole.MANAGER))],
    file: UploadFile = File(...),
    access_level: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
):
    """Upload a new document (Manager or Admin).

    ``access_level`` defaults to private; unknown values are coerced to
    private. ``tags`` is a comma-separated list.

    Example:
        curl -X POST https://docvault.example.com/api/v1/documents/upload \\
             -H "Authorization: Bearer $TOKEN" \\
             -F "file=@contract.pdf" -F "access_level=team" -F "tags=legal, 2026"
    """
    try:
        document, version = await service.create_document(
            current_user,
            _incoming(file),
            access_level=coerce_access_level(access_level),
            tags=tags,
            client=client_info(request),
        )
    except DocumentError as e:
        raise to_http_exception(e)
    except StorageError as e:
        raise _storage_unavailable(e)

    return {
        "message": "File accepted for processing. It will be available after a virus scan.",
        "document": document.to_dict(),
        "version": version.to_dict(),
    }


@router.post(
    "/{document_id}/versions",
    response_model=VersionAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def upload_new_version(
    document_id: UUID,
    request: Request,
    service: Service,
    principal: CurrentPrincipal,
    file: UploadFile = File(...),
):
    """Upload a new version of an existing document (owner or Admin)."""
    try:
        version = await service.create_new_version(
            principal, document_id, _incoming(file), client=client_info(request)
        )
    except DocumentError as e:
        raise to_http_exception(e)
    except StorageError as e:
        raise _storage_unavailable(e)

    return {
        "message": "New version accepted for processing. It will be available after a virus scan.",
        "version": version.to_dict(),
    }


@router.get("")
def get_documents(
    db: Annotated[Session, Depends(get_db)],
    principal: CurrentPrincipal,
    tag: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """List documents visible to the caller whose current version is available."""
    return list_documents(db, principal, page=page, limit=limit, tag=tag)


@router.get("/search")
def search(
    db: Annotated[Session, Depends(get_db)],
    principal: CurrentPrincipal,
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """Search visible, available documents by filename and tags."""
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Search query "q" is required.',
        )
    return search_documents(db, principal, q, page=page, limit=limit)


@router.get("/versions/{version_id}/download")
async def download_version(
    version_id: UUID,
    request: Request,
    service: Service,
    principal: CurrentPrincipal,
):
    """Stream the content of a scanned-clean version the caller may read."""
    try:
        download = await service.open_download(principal, version_id, client=client_info(request))
    except DocumentError as e:
        raise to_http_exception(e)
    except FileNotFoundError:
        logger.error("Content missing for available version", extra={"version_id": str(version_id)})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found on server.")
    except StorageError as e:
        raise _storage_unavailable(e)

    def iter_content():
        try:
            while True:
                chunk = download.stream.read(64 * 1024)
                if not chunk:
                    break
                yield chunk
        finally:
            download.stream.close()

    return StreamingResponse(
        iter_content(),
        media_type=download.mime_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(download.filename)}",
            "Content-Length": str(download.size_bytes),
        },
    )


@router.get("/{document_id}/versions", response_model=VersionHistoryResponse)
def get_version_history(document_id: UUID, service: Service, principal: CurrentPrincipal):
    """Version history of a readable document, newest first."""
    try:
        versions = service.list_versions(principal, document_id)
    except DocumentError as e:
        raise to_http_exception(e)

    return {"document_id": str(document_id), "versions": [v.to_dict() for v in versions]}


@router.put("/{document_id}", response_model=DocumentUpdateResponse)
def update_document(
    document_id: UUID,
    body: DocumentUpdateRequest,
    request: Request,
    service: Service,
    principal: CurrentPrincipal,
):
    """Change access level and/or tags (owner or Admin)."""
    try:
        document = service.update_document(
            principal,
            document_id,
            access_level=body.access_level,
            tags=body.tags,
            client=client_info(request),
        )
    except DocumentError as e:
        raise to_http_exception(e)

    return {"message": "Document updated successfully.", "document": document.to_dict()}


@router.delete("/{document_id}")
async def delete_document(
    document_id: UUID,
    request: Request,
    service: Service,
    principal: CurrentPrincipal,
):
    """Delete a document with all versions and content (owner or Admin)."""
    try:
        await service.delete_document(principal, document_id, client=client_info(request))
    except DocumentError as e:
        raise to_http_exception(e)

    return {"message": "Document deleted successfully."}
