"""Declarative base and column helpers shared by all DocVault models"""

from datetime import datetime, timezone

from sqlalchemy import JSON, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base


class PortableJSONB(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON on every other dialect (tests run on SQLite)."""
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Base = declarative_base()
