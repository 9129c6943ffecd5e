"""Database session factory and configuration.

Provides database connectivity and session management for the DocVault
API and the scan worker.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings

DATABASE_URL = get_settings().DATABASE_URL

# Pool settings only apply to server databases (not SQLite)
_engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": False,  # Set to True for SQL query logging
}

if not DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_engine(DATABASE_URL, **_engine_kwargs)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session for FastAPI endpoints.

    Services commit explicitly; the session is always closed afterwards.

    Usage:
        @router.get("/notifications")
        def get_my_notifications(current_user: CurrentUser, db: Session = Depends(get_db)):
            return list_notifications(db, current_user.id, page=1, limit=20)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
