"""Bulk user provisioning from CSV.

Each row is ``username,email,role[,managerEmail]``. Rows are validated and
created independently: a bad row is reported and skipped, the rest are
committed together at the end. Credentials are issued elsewhere, so
provisioned users get no password here.
"""

import csv
import logging
from io import StringIO
from typing import Optional, Set

import chardet
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..auth.roles import UserRole
from ..models.user import User
from .schemas import REQUIRED_COLUMNS, UserImportError, UserImportResult

logger = logging.getLogger(__name__)

# Roles a managerEmail may point at
MANAGER_ROLES = {UserRole.MANAGER.value, UserRole.ADMIN.value}


class UserImportService:
    """Service for importing users from CSV files"""

    def __init__(self, db: Session):
        self.db = db
        self._seen_usernames: Set[str] = set()
        self._seen_emails: Set[str] = set()

    def import_from_csv(self, file_bytes: bytes) -> UserImportResult:
        """Import users from CSV file bytes

        Args:
            file_bytes: Raw CSV file bytes

        Returns:
            UserImportResult with counts and per-row errors
        """
        detected = chardet.detect(file_bytes)
        encoding = detected['encoding'] or 'utf-8'

        try:
            text = file_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            text = file_bytes.decode('utf-8', errors='replace')

        reader = csv.DictReader(StringIO(text))

        result = UserImportResult(total_rows=0, imported_count=0, error_count=0, errors=[])

        for row_num, row in enumerate(reader, start=2):  # row 1 is the header
            result.total_rows += 1

            try:
                self._validate_and_create_user(row)
                result.imported_count += 1
            except ValueError as e:
                result.error_count += 1
                result.errors.append(UserImportError(
                    row=row_num,
                    username=(row.get('username') or '').strip() or None,
                    error=str(e),
                ))

        if result.imported_count > 0:
            self.db.commit()

        logger.info(
            f"User import finished: {result.imported_count} imported, {result.error_count} errors"
        )
        return result

    def _validate_and_create_user(self, row: dict) -> User:
        """Validate a single row and add the user to the session

        Raises:
            ValueError: If validation fails
        """
        values = {column: (row.get(column) or '').strip() for column in REQUIRED_COLUMNS}
        missing = [column for column, value in values.items() if not value]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        username, email, role = values['username'], values['email'].lower(), values['role']

        valid_roles = [r.value for r in UserRole]
        if role not in valid_roles:
            raise ValueError(f"Invalid role: {role}. Must be one of: {', '.join(sorted(valid_roles))}")

        if username in self._seen_usernames or email in self._seen_emails or self._user_exists(username, email):
            raise ValueError(f"User already exists: {username} or {email}")

        manager_id = None
        manager_email = (row.get('managerEmail') or '').strip().lower()
        if manager_email:
            if role != UserRole.USER.value:
                raise ValueError(f"Only role User can have a manager (got {role})")
            manager = self._find_manager(manager_email)
            if manager is None:
                raise ValueError(f"Manager not found with email: {manager_email}")
            manager_id = manager.id

        # Model validators raise ValueError for malformed emails or usernames
        user = User(username=username, email=email, role=role, manager_id=manager_id)
        self.db.add(user)
        # Flush so later rows can name this user as their manager
        self.db.flush()

        self._seen_usernames.add(username)
        self._seen_emails.add(email)
        return user

    def _user_exists(self, username: str, email: str) -> bool:
        return self.db.execute(
            select(User.id).where(or_(User.username == username, User.email == email))
        ).first() is not None

    def _find_manager(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(User.email == email, User.role.in_(MANAGER_ROLES))
        ).scalar_one_or_none()


def generate_error_csv(result: UserImportResult) -> str:
    """CSV string with one line per rejected row"""
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(['Row', 'Username', 'Error'])
    for error in result.errors:
        writer.writerow([error.row, error.username or '', error.error])

    return output.getvalue()
