"""Change feed model: one row per catalog insert or update."""

from sqlalchemy import Column, BigInteger, Integer, String, DateTime, JSON, Index, func
from sqlalchemy.dialects.postgresql import JSONB

from logbackup.models.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class CatalogChange(Base):
    __tablename__ = "catalog_changes"

    id = Column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, autoincrement=True)

    event_name = Column(String(10), nullable=False)  # INSERT, MODIFY
    instance_id = Column(String(255), nullable=False)
    log_file_name = Column(String(1024), nullable=False)
    old_image = Column(JSONType)
    new_image = Column(JSONType, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    delivered_at = Column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_change_undelivered", "delivered_at", "id"),
    )

    def to_event(self) -> dict:
        """Serialize as a change event message body."""
        return {
            "event_id": str(self.id),
            "event_name": self.event_name,
            "keys": {
                "instance_id": self.instance_id,
                "log_file_name": self.log_file_name,
            },
            "old_image": self.old_image,
            "new_image": self.new_image,
        }
