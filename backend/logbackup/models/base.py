"""Base database configuration and mixins."""

from functools import lru_cache

from sqlalchemy import Column, DateTime, Engine, func, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from logbackup.config import get_settings


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


@lru_cache
def get_sync_engine() -> Engine:
    """Engine for Celery workers and scripts, created on first use."""
    settings = get_settings()
    kwargs = {}
    if not settings.database_url.startswith("sqlite"):
        kwargs = {"pool_size": 5, "max_overflow": 10, "pool_timeout": 30}
    return create_engine(settings.database_url, echo=settings.debug, **kwargs)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(
        bind=get_sync_engine(),
        autocommit=False,
        autoflush=False,
    )
