"""Virus Scanner Port - interface of the external scanning collaborator."""

from abc import ABC, abstractmethod

from .results import ScanReport


class VirusScannerPort(ABC):
    """Scans file content and reports a verdict.

    Contract:
    - Return a ScanReport when the content is clean
    - Raise MaliciousFileError when the content is flagged
    - Raise anything else (preferably TransientScanError) on failure
    """

    name: str = "scanner"

    @abstractmethod
    def scan(self, filename: str, content: bytes) -> ScanReport:
        pass
