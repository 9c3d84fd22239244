"""Log file detection task, one per queued instance."""

import logging

from logbackup.config import get_settings
from logbackup.models.base import get_session_factory
from logbackup.pipeline.detector import LogFileDetector
from logbackup.services.aws import get_rds_client
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import RdsLogSource
from logbackup.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="logbackup.tasks.detect_tasks.detect_log_files")
def detect_log_files(instance_id: str):
    """Sync the catalog with the audit logs of one DB instance."""
    settings = get_settings()
    detector = LogFileDetector(
        source=RdsLogSource(get_rds_client(settings), settings),
        catalog=CatalogStore(get_session_factory()),
    )
    result = detector.process_batch([instance_id])
    return result.model_dump()
