"""Per-document visibility tiers"""

from enum import Enum
from typing import Optional


class AccessLevel(str, Enum):
    """Visibility tier of a document

    - PRIVATE: owner and Admins only
    - TEAM: the owner's direct reports and the owner's manager
    - PUBLIC: any authenticated user
    """
    PRIVATE = "private"
    TEAM = "team"
    PUBLIC = "public"


def parse_access_level(value: Optional[str]) -> AccessLevel:
    """Parse an access level strictly.

    Raises:
        ValueError: If value is not one of private, team, public
    """
    if isinstance(value, AccessLevel):
        return value
    try:
        return AccessLevel((value or "").strip().lower())
    except ValueError:
        raise ValueError(f"Invalid access level: {value!r}")


def coerce_access_level(value: Optional[str]) -> AccessLevel:
    """Lenient parse used by uploads: missing or unknown values become PRIVATE.

    Example:
        >>> coerce_access_level("team")
        <AccessLevel.TEAM: 'team'>
        >>> coerce_access_level("everyone")
        <AccessLevel.PRIVATE: 'private'>
    """
    try:
        return parse_access_level(value)
    except ValueError:
        return AccessLevel.PRIVATE
