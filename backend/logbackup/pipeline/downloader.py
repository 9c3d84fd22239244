"""Log file downloader: archives changed log files to S3.

Consumes change feed events. For each insert, and for each update that
passes ``should_download``, the file is fetched with the portioned protocol,
optionally cross-checked against a single-call download, uploaded under a
deterministic key and only then stamped with ``last_backup``.
"""

import logging
import time
from typing import Callable

from pydantic import ValidationError

from logbackup.config import Settings
from logbackup.schemas.change_event import INSERT, MODIFY, ChangeEvent
from logbackup.schemas.log_file import LogFileImage
from logbackup.schemas.results import DownloadResult
from logbackup.services.archive import ArchiveStore
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import PortionedDownload, RdsLogSource, md5_hex

logger = logging.getLogger(__name__)

PORTIONED_SUFFIX = "-portioned"
FULL_SUFFIX = "-full"


def should_download(old: LogFileImage | None, new: LogFileImage | None,
                    now: float, staleness_threshold_seconds: int) -> bool:
    """Decide whether an updated record needs a fresh backup.

    True when size or last_written changed, when the file has never been
    backed up, when the last backup is older than the threshold, or when any
    of those attributes could not be parsed.
    """
    if new is None:
        return True
    if old is not None and old.unparsed_fields & {"size", "last_written"}:
        return True
    if new.unparsed_fields:
        return True

    if old is not None:
        if old.size is not None and new.size is not None and old.size != new.size:
            return True
        if (old.last_written is not None and new.last_written is not None
                and old.last_written != new.last_written):
            return True

    if new.last_backup is None:
        return True

    return new.last_backup < now - staleness_threshold_seconds


class LogFileDownloader:
    def __init__(self, settings: Settings, source: RdsLogSource, archive: ArchiveStore,
                 catalog: CatalogStore, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.source = source
        self.archive = archive
        self.catalog = catalog
        self.clock = clock

    def process_batch(self, events: list[dict | ChangeEvent]) -> DownloadResult:
        """Handle a batch of change events, one at a time. Failures skip the event."""
        result = DownloadResult()

        for raw in events:
            result.received += 1
            try:
                event = raw if isinstance(raw, ChangeEvent) else ChangeEvent.model_validate(raw)
            except ValidationError as e:
                logger.error(f"Malformed change event skipped: {e}")
                result.failed += 1
                continue

            if event.event_name not in (INSERT, MODIFY):
                result.skipped_event_type += 1
                continue

            if event.event_name == MODIFY and not should_download(
                event.old_image, event.new_image, self.clock(), self.settings.staleness_threshold_seconds
            ):
                logger.debug(f"[{event.instance_id}/{event.log_file_name}] No significant changes, skipping")
                result.skipped_unchanged += 1
                continue

            try:
                key = self.backup(event.instance_id, event.log_file_name)
            except Exception as e:
                logger.error(f"[{event.instance_id}/{event.log_file_name}] Backup failed: {e}")
                result.failed += 1
                continue

            result.backed_up += 1
            result.archived_keys.append(key)

        logger.info(
            f"Processed {result.received} change events: {result.backed_up} backed up, "
            f"{result.skipped_unchanged} unchanged, {result.skipped_event_type} ignored, {result.failed} failed"
        )
        return result

    def backup(self, instance_id: str, log_file_name: str) -> str:
        """Download, archive and stamp one log file. Returns the archive key."""
        label = f"{instance_id}/{log_file_name}"
        logger.info(f"[{label}] Downloading log file")

        download = self.source.download_portioned(instance_id, log_file_name)
        key = self.archive.key_for(instance_id, log_file_name)

        if self.settings.verify_full_download:
            self._verify(instance_id, log_file_name, download, key)

        self.archive.upload(key, download.content)

        self.catalog.mark_backed_up(instance_id, log_file_name, int(self.clock()))
        logger.info(f"[{label}] Backed up to s3://{self.archive.bucket}/{key}")
        return key

    def _verify(self, instance_id: str, log_file_name: str, download: PortionedDownload, key: str) -> None:
        """Cross-check the portioned download against a single-call download.

        Never fails the backup: a mismatch or a failed second download is only
        logged.
        """
        label = f"{instance_id}/{log_file_name}"
        try:
            full = self.source.download_complete(instance_id, log_file_name)
        except Exception as e:
            logger.warning(f"[{label}] Verification download failed: {e}")
            return

        full_checksum = md5_hex(full)
        if full_checksum == download.checksum:
            logger.info(f"[{label}] MD5 checksums match between methods: {full_checksum}")
        else:
            logger.warning(
                f"[{label}] MD5 checksums do not match between methods: "
                f"portioned {download.checksum} ({download.total_bytes} bytes), "
                f"full {full_checksum} ({len(full)} bytes)"
            )

        if self.settings.persist_verification_copies:
            try:
                self.archive.upload(key + PORTIONED_SUFFIX, download.content)
                self.archive.upload(key + FULL_SUFFIX, full)
            except Exception as e:
                logger.warning(f"[{label}] Failed to store verification copies: {e}")
