"""Observability API endpoints: metrics, health and readiness."""

from typing import Annotated, Callable, Dict

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.documents.ports.object_storage_port import ObjectStoragePort
from ..infrastructure.storage import get_storage
from .health import (
    ComponentHealth,
    HealthStatus,
    check_broker_health,
    check_database_health,
    check_object_storage_health,
    get_overall_health,
)

router = APIRouter(tags=["Observability"])


def get_broker_check() -> Callable[[], ComponentHealth]:
    return check_broker_health


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health")
async def health_check(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStoragePort, Depends(get_storage)],
    broker_check: Annotated[Callable[[], ComponentHealth], Depends(get_broker_check)],
):
    """Health of database, broker and object storage; 503 if any is unhealthy."""
    components: Dict[str, ComponentHealth] = {
        "database": check_database_health(db),
        "broker": broker_check(),
        "object_storage": await check_object_storage_health(storage),
    }
    overall_status = get_overall_health(components)

    return JSONResponse(
        content={
            "status": overall_status.value,
            "components": {
                name: {
                    "status": comp.status.value,
                    "message": comp.message,
                    "latency_ms": comp.latency_ms,
                }
                for name, comp in components.items()
            },
        },
        status_code=200 if overall_status != HealthStatus.UNHEALTHY else 503,
    )


@router.get("/ready")
def readiness_check(db: Annotated[Session, Depends(get_db)]):
    """Ready when the database answers."""
    db_health = check_database_health(db)
    if db_health.status == HealthStatus.HEALTHY:
        return {"status": "ready", "message": "Application is ready to serve traffic"}
    return JSONResponse(content={"status": "not_ready", "message": db_health.message}, status_code=503)
