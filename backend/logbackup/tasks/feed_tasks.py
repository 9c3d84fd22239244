"""Change feed relay: moves committed catalog changes onto the download queue."""

import logging
from datetime import datetime, timezone, timedelta

from logbackup.config import get_settings
from logbackup.models.base import get_session_factory
from logbackup.schemas.results import RelayResult
from logbackup.services.catalog import CatalogStore
from logbackup.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def relay_changes(catalog: CatalogStore, publish, batch_size: int, max_batches: int = 100) -> RelayResult:
    """Publish undelivered feed entries in batches, oldest first.

    Entries are marked delivered only after their batch was published, so a
    crash in between redelivers them.
    """
    result = RelayResult()
    while result.batches < max_batches:
        events = catalog.undelivered_changes(batch_size)
        if not events:
            break

        publish(events)
        catalog.mark_delivered([event["event_id"] for event in events])

        result.batches += 1
        result.delivered += len(events)

    if result.delivered:
        logger.info(f"Relayed {result.delivered} catalog changes in {result.batches} batches")
    return result


@celery_app.task(name="logbackup.tasks.feed_tasks.relay_catalog_changes")
def relay_catalog_changes():
    from logbackup.tasks.download_tasks import download_log_files

    settings = get_settings()
    result = relay_changes(
        catalog=CatalogStore(get_session_factory()),
        publish=download_log_files.delay,
        batch_size=settings.feed_relay_batch_size,
    )
    return result.model_dump()


@celery_app.task(name="logbackup.tasks.feed_tasks.prune_catalog_changes")
def prune_catalog_changes():
    """Remove relayed feed entries older than the retention window."""
    settings = get_settings()
    catalog = CatalogStore(get_session_factory())
    cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.feed_retention_hours)
    deleted = catalog.prune_delivered(cutoff)
    logger.info(f"Deleted {deleted} relayed catalog changes older than {settings.feed_retention_hours}h")
    return {"deleted": deleted}
