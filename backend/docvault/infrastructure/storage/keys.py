"""Storage key layout shared by all storage adapters."""

import secrets
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ...domain.documents.validation import sanitize_filename


def generate_storage_key(owner_id: UUID, filename: str, now: Optional[datetime] = None) -> str:
    """Generate a storage key: {owner_id}/{year}/{month}/{token}-{filename}

    The random token makes every key unique, so two versions never share
    stored content even when their bytes are identical.

    Example:
        >>> generate_storage_key(owner_id, "Q3 report.pdf")  # doctest: +SKIP
        'a1b2c3d4-.../2026/10/9f86d081884c7d65-Q3_report.pdf'
    """
    now = now or datetime.now(timezone.utc)
    token = secrets.token_hex(8)
    return f"{owner_id}/{now.year}/{now.month:02d}/{token}-{sanitize_filename(filename)}"
