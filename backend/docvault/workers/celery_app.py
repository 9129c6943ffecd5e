"""Celery application for DocVault background work.

Run a worker with:
    celery -A docvault.workers.celery_app worker -Q virus-scan --loglevel=INFO
"""

from celery import Celery
from celery.signals import setup_logging

from ..config import get_settings
from ..observability.logging_config import configure_logging

settings = get_settings()

SCAN_TASK_NAME = "scanning.scan_version"

celery_app = Celery(
    "docvault",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["docvault.workers.scan_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # At-least-once: ack only after the task body finished
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_routes={SCAN_TASK_NAME: {"queue": settings.SCAN_QUEUE_NAME}},
    task_default_queue=settings.SCAN_QUEUE_NAME,
)


@setup_logging.connect
def configure_worker_logging(**kwargs):
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
