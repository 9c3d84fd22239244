"""Catalog store: log file records plus their change feed.

Every insert or update of a LogFileRecord writes a CatalogChange row in the
same transaction, so the feed never misses a committed mutation.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update

from logbackup.exceptions import LogFileNotFoundError
from logbackup.models.catalog_change import CatalogChange
from logbackup.models.log_file import LogFileRecord
from logbackup.schemas.change_event import INSERT, MODIFY
from logbackup.schemas.log_file import LogFileDetails, LogFileImage

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, instance_id: str, log_file_name: str) -> LogFileImage | None:
        db = self.session_factory()
        try:
            record = db.get(LogFileRecord, (instance_id, log_file_name))
            if record is None:
                return None
            return LogFileImage.model_validate(record.image())
        finally:
            db.close()

    def insert(self, instance_id: str, details: LogFileDetails) -> LogFileImage:
        """Create a record for a newly seen log file, with no backup time."""
        db = self.session_factory()
        try:
            record = LogFileRecord(
                instance_id=instance_id,
                log_file_name=details.log_file_name,
                size=details.size,
                last_written=details.last_written,
            )
            db.add(record)
            db.flush()
            image = record.image()
            db.add(CatalogChange(
                event_name=INSERT,
                instance_id=instance_id,
                log_file_name=details.log_file_name,
                old_image=None,
                new_image=image,
            ))
            db.commit()
            return LogFileImage.model_validate(image)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def update_observation(self, instance_id: str, details: LogFileDetails,
                           expected: LogFileImage) -> LogFileImage | None:
        """Store a new size/last_written, leaving last_backup untouched.

        The write only applies if the stored values still match ``expected``.
        Returns None when another writer got there first.
        """
        db = self.session_factory()
        try:
            result = db.execute(
                update(LogFileRecord)
                .where(
                    LogFileRecord.instance_id == instance_id,
                    LogFileRecord.log_file_name == details.log_file_name,
                    LogFileRecord.size == expected.size,
                    LogFileRecord.last_written == expected.last_written,
                )
                .values(size=details.size, last_written=details.last_written)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                db.rollback()
                logger.info(f"[{instance_id}/{details.log_file_name}] Record changed concurrently, skipping update")
                return None

            record = db.get(LogFileRecord, (instance_id, details.log_file_name))
            image = record.image()
            db.add(CatalogChange(
                event_name=MODIFY,
                instance_id=instance_id,
                log_file_name=details.log_file_name,
                old_image=_image_dict(expected),
                new_image=image,
            ))
            db.commit()
            return LogFileImage.model_validate(image)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def mark_backed_up(self, instance_id: str, log_file_name: str, backed_up_at: int) -> LogFileImage:
        """Set last_backup after a successful archive upload."""
        db = self.session_factory()
        try:
            record = db.get(LogFileRecord, (instance_id, log_file_name))
            if record is None:
                raise LogFileNotFoundError(instance_id, log_file_name)

            old_image = record.image()
            record.last_backup = backed_up_at
            new_image = record.image()
            db.add(CatalogChange(
                event_name=MODIFY,
                instance_id=instance_id,
                log_file_name=log_file_name,
                old_image=old_image,
                new_image=new_image,
            ))
            db.commit()
            return LogFileImage.model_validate(new_image)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def undelivered_changes(self, limit: int) -> list[dict]:
        """Oldest feed entries not yet handed to the download queue."""
        db = self.session_factory()
        try:
            changes = db.scalars(
                select(CatalogChange)
                .where(CatalogChange.delivered_at.is_(None))
                .order_by(CatalogChange.id)
                .limit(limit)
            ).all()
            return [change.to_event() for change in changes]
        finally:
            db.close()

    def mark_delivered(self, event_ids: list[str]) -> int:
        if not event_ids:
            return 0
        db = self.session_factory()
        try:
            result = db.execute(
                update(CatalogChange)
                .where(CatalogChange.id.in_([int(event_id) for event_id in event_ids]))
                .values(delivered_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount
        finally:
            db.close()

    def prune_delivered(self, cutoff: datetime) -> int:
        """Delete feed entries relayed before ``cutoff``. Undelivered entries are kept."""
        db = self.session_factory()
        try:
            result = db.query(CatalogChange).filter(
                CatalogChange.delivered_at.is_not(None),
                CatalogChange.delivered_at < cutoff,
            ).delete(synchronize_session=False)
            db.commit()
            return result
        finally:
            db.close()


def _image_dict(image: LogFileImage) -> dict:
    return image.model_dump(exclude={"unparsed_fields"}, exclude_none=True)
