"""Scanning domain module - job schema, outcomes, scanner port"""

from .jobs import ScanJob, SCAN_JOB_SCHEMA_VERSION
from .results import (
    ScanOutcome,
    ScanReport,
    MaliciousFileError,
    TransientScanError,
    classify_exception,
)
from .ports import VirusScannerPort

__all__ = [
    "ScanJob",
    "SCAN_JOB_SCHEMA_VERSION",
    "ScanOutcome",
    "ScanReport",
    "MaliciousFileError",
    "TransientScanError",
    "classify_exception",
    "VirusScannerPort",
]
