"""Shared fixtures: settings and an in-memory catalog database."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("QUEUE_URL", "memory://")
os.environ.setdefault("ARCHIVE_BUCKET", "test-archive")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from logbackup.config import Settings
from logbackup.models import Base
from logbackup.services.catalog import CatalogStore


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        queue_url="memory://",
        archive_bucket="test-archive",
        archive_prefix="prefix",
        portion_line_count=2,
        _env_file=None,
    )

@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    engine.dispose()

@pytest.fixture
def catalog(session_factory):
    return CatalogStore(session_factory)
