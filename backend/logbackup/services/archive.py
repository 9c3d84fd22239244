"""S3 archive for downloaded log files."""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from logbackup.exceptions import ArchiveUploadError

logger = logging.getLogger(__name__)


def archive_key(prefix: str, instance_id: str, log_file_name: str) -> str:
    """Deterministic object key, so re-uploads overwrite the same object."""
    prefix = prefix.strip("/")
    if prefix:
        return f"{prefix}/{instance_id}/{log_file_name}"
    return f"{instance_id}/{log_file_name}"


class ArchiveStore:
    def __init__(self, client, bucket: str, prefix: str = "logs"):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def key_for(self, instance_id: str, log_file_name: str) -> str:
        return archive_key(self.prefix, instance_id, log_file_name)

    def upload(self, key: str, content: bytes, content_type: str = "text/plain") -> str:
        logger.info(f"Uploading log file to s3://{self.bucket}/{key} ({len(content)} bytes)")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise ArchiveUploadError(f"Failed to upload s3://{self.bucket}/{key}: {e}") from e
        return key
