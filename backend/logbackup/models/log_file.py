"""Catalog model: one row per (instance, log file) with backup state."""

from sqlalchemy import Column, String, BigInteger

from logbackup.config import get_settings
from logbackup.models.base import Base, TimestampMixin


class LogFileRecord(TimestampMixin, Base):
    __tablename__ = get_settings().catalog_table

    instance_id = Column(String(255), primary_key=True)
    log_file_name = Column(String(1024), primary_key=True)

    # As last reported by describe_db_log_files
    size = Column(BigInteger, nullable=False)
    last_written = Column(BigInteger, nullable=False)

    # Unix timestamp of the last successful archive upload, NULL if never
    last_backup = Column(BigInteger)

    def image(self) -> dict:
        """Attribute image published on the change feed."""
        image = {
            "instance_id": self.instance_id,
            "log_file_name": self.log_file_name,
            "size": self.size,
            "last_written": self.last_written,
        }
        if self.last_backup is not None:
            image["last_backup"] = self.last_backup
        return image

    def __repr__(self) -> str:
        return f"<LogFileRecord {self.instance_id}/{self.log_file_name} size={self.size}>"
