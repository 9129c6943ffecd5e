"""File validation utilities for document uploads"""

import os
import re
from typing import Iterable, List, Optional, Tuple, Union


# Accepted upload MIME types
SUPPORTED_MIME_TYPES = {
    'application/pdf',
    'image/jpeg',
    'image/png',
    'application/msword',  # .doc
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',  # .docx
}

MAX_TAG_LENGTH = 64


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Check if MIME type is supported for upload

    Example:
        >>> is_supported_mime_type('application/pdf')
        True
        >>> is_supported_mime_type('text/csv')
        False
    """
    return mime_type in SUPPORTED_MIME_TYPES


def validate_file_size(size_bytes: int, max_size: int) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024, 2048)
        (True, None)
        >>> validate_file_size(0, 2048)
        (False, 'File is empty (0 bytes)')
    """
    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No null bytes or control characters

    Path components are not rejected here; sanitize_filename strips them.
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for use inside a storage key

    Example:
        >>> sanitize_filename('../../report.pdf')
        'report.pdf'
        >>> sanitize_filename('Q3 report (final).pdf')
        'Q3_report__final_.pdf'
    """
    # Remove path components (both separators, whatever the host OS)
    filename = os.path.basename(filename.replace('\\', '/'))

    filename = re.sub(r'[^a-zA-Z0-9._-]', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename or "file"


def parse_tags(raw: Union[str, Iterable[str], None]) -> List[str]:
    """Parse tags from a comma-separated string or a list.

    Tags are trimmed, empty entries dropped and duplicates removed while
    keeping first-seen order.

    Example:
        >>> parse_tags(" finance, q3 ,,finance")
        ['finance', 'q3']
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)

    tags: List[str] = []
    for part in parts:
        tag = str(part).strip()[:MAX_TAG_LENGTH]
        if tag and tag not in tags:
            tags.append(tag)
    return tags
