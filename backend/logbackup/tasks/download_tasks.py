"""Log file download task, one per batch of change events."""

import logging

from logbackup.config import get_settings
from logbackup.models.base import get_session_factory
from logbackup.pipeline.downloader import LogFileDownloader
from logbackup.services.archive import ArchiveStore
from logbackup.services.aws import get_rds_client, get_s3_client
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import RdsLogSource
from logbackup.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="logbackup.tasks.download_tasks.download_log_files")
def download_log_files(events: list[dict]):
    """Archive the log files behind a batch of catalog change events."""
    settings = get_settings()
    if not settings.archive_bucket:
        raise ValueError("ARCHIVE_BUCKET is not configured")

    downloader = LogFileDownloader(
        settings=settings,
        source=RdsLogSource(get_rds_client(settings), settings),
        archive=ArchiveStore(get_s3_client(settings), settings.archive_bucket, settings.archive_prefix),
        catalog=CatalogStore(get_session_factory()),
    )
    result = downloader.process_batch(events)
    return result.model_dump()
