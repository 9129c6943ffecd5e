"""Virus scanner adapters."""

from typing import Optional

from ...config import Settings, get_settings
from ...domain.scanning.ports import VirusScannerPort
from .passthrough_scanner import PassthroughScanner
from .virustotal_scanner import VirusTotalScanner


def build_scanner(settings: Optional[Settings] = None) -> VirusScannerPort:
    """Scanner selected by settings.

    A missing API key with scanning enabled still yields the VirusTotal
    scanner: scans then fail transiently and end up dead-lettered rather
    than silently passing unscanned content.
    """
    settings = settings or get_settings()
    if not settings.VIRUS_SCAN_ENABLED:
        return PassthroughScanner()
    return VirusTotalScanner(
        api_key=settings.VIRUSTOTAL_API_KEY,
        base_url=settings.VIRUSTOTAL_BASE_URL,
        timeout=settings.VIRUSTOTAL_TIMEOUT_SECONDS,
        poll_attempts=settings.SCAN_POLL_ATTEMPTS,
        poll_interval=settings.SCAN_POLL_INTERVAL_SECONDS,
    )


__all__ = ["PassthroughScanner", "VirusTotalScanner", "build_scanner"]
