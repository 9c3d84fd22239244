"""Log file detector: keeps the catalog in step with each instance's audit logs."""

import logging

from sqlalchemy.exc import IntegrityError

from logbackup.schemas.log_file import LogFileDetails
from logbackup.schemas.results import DetectResult, InstanceDetectStats
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import RdsLogSource

logger = logging.getLogger(__name__)

AUDIT_LOG_NAMES = frozenset({
    "audit.log",
    "audit/server_audit.log",
    "error/mysql-audit.log",
})
AUDIT_PREFIX = "audit"


def is_audit_log(log_file_name: str) -> bool:
    """True for the known audit log paths and anything starting with "audit"."""
    return log_file_name in AUDIT_LOG_NAMES or log_file_name[:5] == AUDIT_PREFIX


class LogFileDetector:
    def __init__(self, source: RdsLogSource, catalog: CatalogStore):
        self.source = source
        self.catalog = catalog

    def process_batch(self, instance_ids: list[str]) -> DetectResult:
        """Sync the catalog for each instance. One failing instance does not stop the rest."""
        result = DetectResult()
        for instance_id in instance_ids:
            logger.info(f"Processing DB instance: {instance_id}")
            try:
                log_files = self.source.list_log_files(instance_id)
            except Exception as e:
                logger.error(f"Error getting log files for instance {instance_id}: {e}")
                result.failed_instances.append(instance_id)
                continue

            stats = self.sync_instance(instance_id, log_files)
            result.instances.append(stats)
            logger.info(
                f"[{instance_id}] {stats.audit_files} audit logs of {stats.files_seen} files: "
                f"{stats.inserted} new, {stats.updated} updated, {stats.unchanged} unchanged, "
                f"{stats.errors} errors"
            )
        return result

    def sync_instance(self, instance_id: str, log_files: list[LogFileDetails]) -> InstanceDetectStats:
        stats = InstanceDetectStats(instance_id=instance_id, files_seen=len(log_files))

        for details in log_files:
            if not is_audit_log(details.log_file_name):
                continue
            stats.audit_files += 1

            try:
                outcome = self._sync_file(instance_id, details)
            except Exception as e:
                logger.warning(f"[{instance_id}/{details.log_file_name}] Failed to sync catalog record: {e}")
                stats.errors += 1
                continue

            if outcome == "new":
                stats.inserted += 1
            elif outcome == "updated":
                stats.updated += 1
            else:
                stats.unchanged += 1

        return stats

    def _sync_file(self, instance_id: str, details: LogFileDetails) -> str:
        """Insert or update one record. Returns 'new', 'updated', or 'unchanged'."""
        existing = self.catalog.get(instance_id, details.log_file_name)

        if existing is None:
            logger.debug(f"[{instance_id}/{details.log_file_name}] Creating new record")
            try:
                self.catalog.insert(instance_id, details)
            except IntegrityError:
                logger.info(f"[{instance_id}/{details.log_file_name}] Created concurrently, skipping insert")
                return "unchanged"
            return "new"

        if existing.size != details.size or existing.last_written != details.last_written:
            logger.debug(
                f"[{instance_id}/{details.log_file_name}] Changed: size {existing.size} -> {details.size}, "
                f"last_written {existing.last_written} -> {details.last_written}"
            )
            if self.catalog.update_observation(instance_id, details, expected=existing) is None:
                return "unchanged"
            return "updated"

        logger.debug(f"[{instance_id}/{details.log_file_name}] Unchanged, skipping")
        return "unchanged"
