from .celery_scan_queue import CeleryScanQueue, get_scan_queue

__all__ = ["CeleryScanQueue", "get_scan_queue"]
