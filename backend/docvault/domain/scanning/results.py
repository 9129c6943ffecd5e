"""Scan outcomes and the error taxonomy of the scan pipeline.

Only a malicious verdict is distinguished from ordinary errors. Everything
else a scan can raise is transient: the job is retried by the queue and,
once the retry budget is spent, dead-lettered.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ScanOutcome(str, Enum):
    """Classification of a single scan attempt"""
    CLEAN = "clean"
    MALICIOUS = "malicious"  # Terminal, never retried
    TRANSIENT = "transient"  # Recoverable, retried by the queue


class MaliciousFileError(Exception):
    """Definitive malicious verdict.

    Raised by scanners when the content was successfully scanned and flagged.
    Retrying cannot change the verdict.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TransientScanError(Exception):
    """Recoverable scan failure (network, rate limit, scanner unavailable)."""
    pass


@dataclass
class ScanReport:
    """Result of a clean scan as reported by the scanning collaborator."""
    scanner: str
    outcome: ScanOutcome = ScanOutcome.CLEAN
    detail: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)


def classify_exception(exc: BaseException) -> ScanOutcome:
    """Map an exception raised during a scan attempt to an outcome.

    Example:
        >>> classify_exception(MaliciousFileError("Flagged by 3 engines"))
        <ScanOutcome.MALICIOUS: 'malicious'>
        >>> classify_exception(TimeoutError())
        <ScanOutcome.TRANSIENT: 'transient'>
    """
    if isinstance(exc, MaliciousFileError):
        return ScanOutcome.MALICIOUS
    return ScanOutcome.TRANSIENT
