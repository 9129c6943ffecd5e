"""Health check utilities for DocVault."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import redis
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import get_settings
from ..domain.documents.ports.object_storage_port import ObjectStoragePort

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Database connection OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Database error: {str(e)}")


def check_broker_health() -> ComponentHealth:
    """Ping the Redis broker behind the scan queue."""
    try:
        client = redis.from_url(get_settings().CELERY_BROKER_URL, socket_connect_timeout=2)
        start = time.time()
        client.ping()
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Broker connection OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Broker health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Broker error: {str(e)}")


async def check_object_storage_health(storage: ObjectStoragePort) -> ComponentHealth:
    try:
        start = time.time()
        await storage.verify_ready()
        latency_ms = (time.time() - start) * 1000
        return ComponentHealth(HealthStatus.HEALTHY, "Object storage OK", round(latency_ms, 2))
    except Exception as e:
        logger.error(f"Object storage health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Object storage error: {str(e)}")


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
