"""VirusTotal v3 implementation of VirusScannerPort.

Flow per scan:
1. POST /files (multipart) -> analysis id
2. GET /analyses/{id} until status == "completed" (bounded polling)
3. stats.malicious > 0 -> MaliciousFileError, otherwise clean

Every failure that is not a completed malicious verdict is raised as
TransientScanError so the queue retries the job.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ...domain.scanning.ports import VirusScannerPort
from ...domain.scanning.results import (
    MaliciousFileError,
    ScanOutcome,
    ScanReport,
    TransientScanError,
)

logger = logging.getLogger(__name__)


class VirusTotalScanner(VirusScannerPort):
    """Scanner backed by the VirusTotal v3 REST API.

    Args:
        api_key: VirusTotal API key (None -> every scan fails transiently)
        base_url: API root, e.g. https://www.virustotal.com/api/v3
        timeout: Per-request timeout in seconds
        poll_attempts: Analysis polls before giving up on this attempt
        poll_interval: Seconds between polls
        session: Injected requests.Session (tests)
        sleep: Injected sleep function (tests)
    """

    name = "virustotal"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://www.virustotal.com/api/v3",
        timeout: float = 30.0,
        poll_attempts: int = 10,
        poll_interval: float = 15.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self.session = session or requests.Session()
        self.sleep = sleep

    def scan(self, filename: str, content: bytes) -> ScanReport:
        if not self.api_key:
            raise TransientScanError("VirusTotal API key is not configured")

        analysis_id = self._upload(filename, content)
        attributes = self._wait_for_analysis(analysis_id)

        stats = attributes.get("stats") or {}
        malicious = int(stats.get("malicious") or 0)
        if malicious > 0:
            raise MaliciousFileError(f"File is malicious. Flagged by {malicious} engines.")

        logger.info(f"VirusTotal analysis clean: analysis_id={analysis_id}")
        return ScanReport(scanner=self.name, outcome=ScanOutcome.CLEAN, stats=stats)

    def _upload(self, filename: str, content: bytes) -> str:
        data = self._request("POST", "/files", files={"file": (filename, content)})
        try:
            return data["data"]["id"]
        except (KeyError, TypeError):
            raise TransientScanError("VirusTotal upload response has no analysis id")

    def _wait_for_analysis(self, analysis_id: str) -> Dict[str, Any]:
        for attempt in range(1, self.poll_attempts + 1):
            data = self._request("GET", f"/analyses/{analysis_id}")
            attributes = (data.get("data") or {}).get("attributes") or {}
            if attributes.get("status") == "completed":
                return attributes

            logger.debug(
                f"VirusTotal analysis pending: analysis_id={analysis_id}, "
                f"attempt={attempt}/{self.poll_attempts}"
            )
            if attempt < self.poll_attempts:
                self.sleep(self.poll_interval)

        raise TransientScanError(
            f"VirusTotal analysis {analysis_id} not completed after {self.poll_attempts} polls"
        )

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                headers={"x-apikey": self.api_key},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise TransientScanError(f"VirusTotal request failed: {e}") from e

        if response.status_code == 429:
            raise TransientScanError("VirusTotal rate limit exceeded")
        if response.status_code >= 400:
            raise TransientScanError(
                f"VirusTotal returned HTTP {response.status_code} for {method} {path}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransientScanError(f"VirusTotal returned invalid JSON: {e}") from e
