"""Scan Queue Port - Domain interface for enqueuing malware scan jobs.

Delivery is at-least-once: a job may be processed more than once, which the
version status guard turns into a no-op.
"""

from abc import ABC, abstractmethod

from ...scanning.jobs import ScanJob


class ScanQueuePort(ABC):
    """Port interface for the scan work queue."""

    @abstractmethod
    def enqueue(self, job: ScanJob) -> str:
        """Enqueue a scan job.

        Returns:
            str: Queue-assigned job identifier

        Raises:
            Exception: Any broker failure propagates to the caller, which is
                responsible for compensating the database write
        """
        pass
