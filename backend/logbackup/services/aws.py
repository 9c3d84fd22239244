"""boto3 client construction."""

import boto3
from botocore.config import Config

from logbackup.config import Settings


def get_rds_client(settings: Settings):
    """RDS client whose read timeout bounds each log file portion request.

    Retries are off so a single portion call cannot outlive the timeout;
    a failed portion fails the event and is picked up on a later cycle.
    """
    config = Config(
        read_timeout=settings.portion_timeout_seconds,
        connect_timeout=10,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )
    return boto3.client("rds", region_name=settings.aws_region, config=config)


def get_s3_client(settings: Settings):
    config = Config(retries={"max_attempts": 5, "mode": "standard"})
    return boto3.client("s3", region_name=settings.aws_region, config=config)
