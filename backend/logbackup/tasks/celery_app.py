"""Celery application configuration and beat schedule."""

import logging

from celery import Celery
from celery.schedules import crontab
from celery.signals import after_setup_logger, after_setup_task_logger

from logbackup.config import Settings, get_settings

settings = get_settings()


def task_routes(settings: Settings) -> dict:
    return {
        "logbackup.tasks.detect_tasks.detect_log_files": {"queue": settings.work_queue_name},
        "logbackup.tasks.download_tasks.download_log_files": {"queue": settings.download_queue_name},
    }


def _sibling_queue_url(queue_url: str, name: str) -> str:
    return f"{queue_url.rsplit('/', 1)[0]}/{name}"


def broker_options(settings: Settings) -> tuple[str, dict]:
    """Map queue_url to a kombu broker URL and transport options.

    An SQS queue URL becomes the sqs:// transport. The SQS transport only
    talks to predefined queues, so the work, download and default queues are
    all registered; download and default URLs fall back to queues of that
    name in the same account. Anything else (redis://, amqp://) is used as is.
    """
    if settings.queue_url.startswith("https://sqs."):
        options = {
            "predefined_queues": {
                settings.work_queue_name: {"url": settings.queue_url},
                settings.download_queue_name: {
                    "url": settings.download_queue_url
                    or _sibling_queue_url(settings.queue_url, settings.download_queue_name),
                },
                settings.default_queue_name: {
                    "url": settings.default_queue_url
                    or _sibling_queue_url(settings.queue_url, settings.default_queue_name),
                },
            },
        }
        if settings.aws_region:
            options["region"] = settings.aws_region
        return "sqs://", options
    return settings.queue_url, {}


broker_url, broker_transport_options = broker_options(settings)

celery_app = Celery(
    "logbackup",
    broker=broker_url,
    backend=settings.result_backend_url,
    include=[
        "logbackup.tasks.scan_tasks",
        "logbackup.tasks.detect_tasks",
        "logbackup.tasks.feed_tasks",
        "logbackup.tasks.download_tasks",
    ],
)

celery_app.conf.update(
    broker_transport_options=broker_transport_options,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=330,
    task_soft_time_limit=300,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_queue=settings.default_queue_name,
    task_routes=task_routes(settings),
)

celery_app.conf.beat_schedule = {
    "scan-db-instances": {
        "task": "logbackup.tasks.scan_tasks.scan_instances",
        "schedule": crontab(minute=f"*/{settings.scan_interval_minutes}"),
    },
    "relay-catalog-changes": {
        "task": "logbackup.tasks.feed_tasks.relay_catalog_changes",
        "schedule": float(settings.feed_relay_interval_seconds),
    },
    "prune-catalog-changes": {
        "task": "logbackup.tasks.feed_tasks.prune_catalog_changes",
        "schedule": float(settings.feed_prune_interval_minutes * 60),
    },
}


@after_setup_logger.connect
@after_setup_task_logger.connect
def _apply_log_level(logger, *args, **kwargs):
    logger.setLevel(settings.log_level.upper())
    logging.getLogger("logbackup").setLevel(settings.log_level.upper())
    # boto's wire logging is too chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
