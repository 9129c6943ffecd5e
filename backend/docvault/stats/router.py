"""Admin dashboard statistics, served through a TTL cache."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.dependencies import require_role
from ..auth.roles import UserRole
from ..config import get_settings
from ..database import get_db
from ..models.user import User
from .cache import TTLCache
from .service import compute_dashboard_stats

router = APIRouter(prefix="/stats", tags=["Stats"])

DASHBOARD_CACHE_KEY = "dashboard_stats"

stats_cache = TTLCache(ttl_seconds=get_settings().STATS_CACHE_TTL_SECONDS)


@router.get("/dashboard")
def get_dashboard_stats(
    admin: Annotated[User, Depends(require_role(UserRole.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    return stats_cache.get_or_set(DASHBOARD_CACHE_KEY, lambda: compute_dashboard_stats(db))
