"""Pydantic schemas package."""

from logbackup.schemas.log_file import (
    LogFileDetails,
    LogFileImage,
    LogFileKey,
)
from logbackup.schemas.change_event import (
    INSERT,
    MODIFY,
    ChangeEvent,
)
from logbackup.schemas.results import (
    DetectResult,
    DownloadResult,
    InstanceDetectStats,
    RelayResult,
    ScanResult,
)

__all__ = [
    # Log files
    "LogFileDetails",
    "LogFileImage",
    "LogFileKey",
    # Change feed
    "INSERT",
    "MODIFY",
    "ChangeEvent",
    # Stage results
    "DetectResult",
    "DownloadResult",
    "InstanceDetectStats",
    "RelayResult",
    "ScanResult",
]
