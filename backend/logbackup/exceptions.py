"""Domain exceptions for the backup pipeline."""


class LogBackupError(Exception):
    """Base class for pipeline errors that are handled per item."""


class LogFileNotFoundError(LogBackupError):
    """The instance no longer reports the requested log file."""

    def __init__(self, instance_id: str, log_file_name: str):
        self.instance_id = instance_id
        self.log_file_name = log_file_name
        super().__init__(f"Log file not found: {instance_id}/{log_file_name}")


class PortionedDownloadError(LogBackupError):
    """The portioned download protocol could not complete."""


class ArchiveUploadError(LogBackupError):
    """Uploading an object to the archive bucket failed."""
