"""Instance scanner: finds audited DB instances and queues them for detection."""

import logging
from typing import Callable

from logbackup.config import Settings
from logbackup.schemas.results import ScanResult
from logbackup.services.rds_logs import RdsLogSource

logger = logging.getLogger(__name__)


class InstanceScanner:
    """Publishes the identifier of every instance running an audited engine.

    ``publish`` receives a bare instance identifier and puts it on the work
    queue. A failure to list instances propagates; a failure to publish one
    instance is logged and the scan moves on.
    """

    def __init__(self, settings: Settings, source: RdsLogSource, publish: Callable[[str], None]):
        self.settings = settings
        self.source = source
        self.publish = publish

    def is_audited(self, instance: dict) -> bool:
        return instance.get("Engine") in self.settings.audited_engines

    def run(self) -> ScanResult:
        logger.info("Starting DB instance scan")
        instances = self.source.list_db_instances()

        audited = [instance for instance in instances if self.is_audited(instance)]
        logger.info(f"Found {len(audited)} audited instances out of {len(instances)}")

        result = ScanResult(instances_found=len(audited), queue=self.settings.work_queue_name)
        for instance in audited:
            instance_id = instance["DBInstanceIdentifier"]
            try:
                self.publish(instance_id)
            except Exception as e:
                logger.error(f"Failed to publish instance {instance_id}: {e}")
                continue
            result.instances_published += 1
            result.instance_ids.append(instance_id)

        logger.info(f"Published {result.instances_published}/{result.instances_found} instances to {result.queue}")
        return result
