"""SQLAlchemy models package."""

from logbackup.models.base import Base, get_session_factory, get_sync_engine
from logbackup.models.log_file import LogFileRecord
from logbackup.models.catalog_change import CatalogChange

__all__ = [
    "Base",
    "get_session_factory",
    "get_sync_engine",
    "LogFileRecord",
    "CatalogChange",
]
