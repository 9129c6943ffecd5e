"""Unit tests for the Celery scan queue adapter"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from docvault.domain.scanning import ScanJob
from docvault.infrastructure.queue import CeleryScanQueue
from docvault.workers.celery_app import SCAN_TASK_NAME, celery_app


def test_enqueue_sends_task_by_name():
    app = MagicMock()
    app.send_task.return_value = MagicMock(id="task-123")
    queue = CeleryScanQueue(app=app, queue_name="virus-scan")
    job = ScanJob(version_id=uuid4(), file_locator="owner/2026/10/abc-report.pdf")

    task_id = queue.enqueue(job)

    assert task_id == "task-123"
    app.send_task.assert_called_once_with(SCAN_TASK_NAME, args=[job.to_payload()], queue="virus-scan")


def test_broker_errors_propagate():
    app = MagicMock()
    app.send_task.side_effect = ConnectionError("redis down")
    queue = CeleryScanQueue(app=app, queue_name="virus-scan")

    with pytest.raises(ConnectionError):
        queue.enqueue(ScanJob(version_id=uuid4(), file_locator="a"))


def test_default_queue_comes_from_app_config():
    assert CeleryScanQueue().queue_name == celery_app.conf.task_default_queue == "virus-scan"


def test_worker_settings():
    assert celery_app.conf.task_acks_late is True
    assert celery_app.conf.worker_prefetch_multiplier == 1
