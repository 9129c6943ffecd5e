"""Audit logging service for document activity.

Every mutating document operation (and every successful download) writes
exactly one immutable audit entry through this module.

Audit Actions:
- upload, version_upload
- delete
- access_change, metadata_update
- download
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from ..models.audit_log import AuditAction, AuditLog


@dataclass(frozen=True)
class ClientInfo:
    """Client address and agent captured from the HTTP request."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def client_info(request: Optional[Request]) -> ClientInfo:
    """Extract client IP (honouring X-Forwarded-For) and User-Agent."""
    if request is None:
        return ClientInfo()

    ip_address = request.client.host if request.client else None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Use first IP in chain (original client)
        ip_address = forwarded_for.split(",")[0].strip()

    return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("User-Agent"))


def log_document_event(
    db: Session,
    action: Union[AuditAction, str],
    document_id: UUID,
    actor_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    client: Optional[ClientInfo] = None,
) -> AuditLog:
    """Create an audit log entry.

    The entry joins the caller's transaction; it is committed (or rolled
    back) together with the change it describes.

    Args:
        db: Database session
        action: AuditAction (or its string value)
        document_id: Document the action applies to
        actor_id: User who performed the action
        metadata: Additional context as JSON (e.g., {"old": "private", "new": "team"})
        client: Request client information

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_document_event(
            db,
            AuditAction.ACCESS_CHANGE,
            document.id,
            actor_id=current_user.id,
            metadata={"old": "private", "new": "public"},
            client=client_info(request),
        )
    """
    client = client or ClientInfo()
    audit_entry = AuditLog(
        actor_id=actor_id,
        document_id=document_id,
        action=AuditAction(action).value,
        metadata_json=metadata,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )

    db.add(audit_entry)
    db.flush()  # Get ID without committing transaction

    return audit_entry
