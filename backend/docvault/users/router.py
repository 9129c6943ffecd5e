"""User provisioning endpoints (Admin only)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..database import get_db
from ..models.user import User
from .import_service import UserImportService, generate_error_csv
from .schemas import UserImportResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]


async def _read_csv(file: UploadFile) -> bytes:
    if not (file.filename or '').lower().endswith('.csv'):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be a CSV")
    return await file.read()


@router.post("/import", response_model=UserImportResult)
async def import_users(
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    file: UploadFile = File(..., description="CSV file with users"),
):
    """Create users from a CSV file.

    CSV must have columns:
    - Required: username, email, role (User, Manager or Admin)
    - Optional: managerEmail (an existing Manager or Admin, only for role User)
    """
    file_bytes = await _read_csv(file)

    result = UserImportService(db).import_from_csv(file_bytes)

    logger.info(
        f"User import by {admin.username}: {result.imported_count} imported, {result.error_count} errors"
    )
    return result


@router.post("/import/errors", response_class=Response)
async def import_users_error_report(
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    file: UploadFile = File(..., description="CSV file with users"),
):
    """Run an import and return only the rejected rows as CSV."""
    file_bytes = await _read_csv(file)

    result = UserImportService(db).import_from_csv(file_bytes)

    return Response(
        content=generate_error_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=user_import_errors.csv"},
    )
