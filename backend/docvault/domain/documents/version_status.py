"""VersionStatus state machine for the document version lifecycle

A version is created in PENDING_SCAN and resolved exactly once by the scan
pipeline. Both resolutions are terminal: an available version is never
pulled and a quarantined one is never resurrected without a new version.
"""

from enum import Enum
from typing import Optional, Dict, List


class VersionStatus(str, Enum):
    """Document version status enum

    State flow:
    PENDING_SCAN → AVAILABLE or QUARANTINED
    """
    PENDING_SCAN = "pending_scan"  # Uploaded, not yet scanned (initial)
    AVAILABLE = "available"        # Scan clean (terminal success)
    QUARANTINED = "quarantined"    # Scan found malware (terminal failure)


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[VersionStatus], List[VersionStatus]] = {
    None: [VersionStatus.PENDING_SCAN],
    VersionStatus.PENDING_SCAN: [VersionStatus.AVAILABLE, VersionStatus.QUARANTINED],
    VersionStatus.AVAILABLE: [],  # Terminal success state
    VersionStatus.QUARANTINED: [],  # Terminal failure state
}

TERMINAL_STATUSES = frozenset({VersionStatus.AVAILABLE, VersionStatus.QUARANTINED})


def can_transition(from_status: Optional[VersionStatus], to_status: VersionStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for new versions)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(VersionStatus.PENDING_SCAN, VersionStatus.AVAILABLE)
        True
        >>> can_transition(VersionStatus.AVAILABLE, VersionStatus.QUARANTINED)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def is_terminal(status: VersionStatus) -> bool:
    return status in TERMINAL_STATUSES
