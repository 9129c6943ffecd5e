"""Documents domain module - version lifecycle, access levels, upload validation"""

from .version_status import (
    VersionStatus,
    can_transition,
    is_terminal,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
)
from .access_level import AccessLevel, parse_access_level, coerce_access_level
from .validation import (
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
    sanitize_filename,
    parse_tags,
    SUPPORTED_MIME_TYPES,
)

__all__ = [
    "VersionStatus",
    "can_transition",
    "is_terminal",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "AccessLevel",
    "parse_access_level",
    "coerce_access_level",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_filename",
    "sanitize_filename",
    "parse_tags",
    "SUPPORTED_MIME_TYPES",
]
