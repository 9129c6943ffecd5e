"""Celery implementation of ScanQueuePort.

Jobs are sent by task name so the API process never imports the scan task module.
"""

import logging
from functools import lru_cache
from typing import Optional

from celery import Celery

from ...domain.documents.ports.scan_queue_port import ScanQueuePort
from ...domain.scanning.jobs import ScanJob
from ...workers.celery_app import SCAN_TASK_NAME, celery_app

logger = logging.getLogger(__name__)


class CeleryScanQueue(ScanQueuePort):
    """Publishes scan jobs to the virus-scan queue."""

    def __init__(self, app: Optional[Celery] = None, queue_name: Optional[str] = None):
        self.app = app if app is not None else celery_app
        self.queue_name = queue_name or self.app.conf.task_default_queue

    def enqueue(self, job: ScanJob) -> str:
        result = self.app.send_task(
            SCAN_TASK_NAME,
            args=[job.to_payload()],
            queue=self.queue_name,
        )
        logger.info(
            "Enqueued scan job",
            extra={"version_id": str(job.version_id), "task_id": result.id},
        )
        return result.id


@lru_cache()
def get_scan_queue() -> ScanQueuePort:
    """Process-wide scan queue (also a FastAPI dependency)."""
    return CeleryScanQueue()
