"""Instance scan task, run by beat."""

import logging

from logbackup.config import get_settings
from logbackup.pipeline.scanner import InstanceScanner
from logbackup.services.aws import get_rds_client
from logbackup.services.rds_logs import RdsLogSource
from logbackup.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _publish_instance(instance_id: str) -> None:
    from logbackup.tasks.detect_tasks import detect_log_files
    detect_log_files.delay(instance_id)


@celery_app.task(name="logbackup.tasks.scan_tasks.scan_instances")
def scan_instances():
    """Queue every audited DB instance for log file detection."""
    settings = get_settings()
    scanner = InstanceScanner(
        settings=settings,
        source=RdsLogSource(get_rds_client(settings), settings),
        publish=_publish_instance,
    )
    result = scanner.run()
    return result.model_dump()
