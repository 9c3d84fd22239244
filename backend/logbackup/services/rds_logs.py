"""RDS instance and log file access.

Listing calls follow ``Marker`` until RDS stops returning one. Log content is
fetched with ``download_db_log_file_portion``, either portion by portion from
marker "0" or, for verification, in one call with ``NumberOfLines=0``.
"""

import hashlib
import logging
import time
from dataclasses import dataclass

from logbackup.config import Settings
from logbackup.exceptions import LogFileNotFoundError, PortionedDownloadError
from logbackup.schemas.log_file import LogFileDetails

logger = logging.getLogger(__name__)

START_MARKER = "0"


def md5_hex(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


@dataclass
class PortionedDownload:
    """Downloaded content plus the metrics gathered while fetching it."""

    content: bytes
    portions: int
    line_count: int
    expected_size: int | None = None

    @property
    def total_bytes(self) -> int:
        return len(self.content)

    @property
    def checksum(self) -> str:
        return md5_hex(self.content)


class RdsLogSource:
    """Thin wrapper over the RDS API calls the pipeline needs."""

    def __init__(self, client, settings: Settings, clock=time.monotonic):
        self.client = client
        self.settings = settings
        self.clock = clock

    def list_db_instances(self) -> list[dict]:
        """Return every DB instance in the region. Errors propagate."""
        instances = []
        marker = None

        while True:
            kwargs = {"Marker": marker} if marker else {}
            resp = self.client.describe_db_instances(**kwargs)
            instances.extend(resp.get("DBInstances", []))

            marker = resp.get("Marker")
            if not marker:
                break

        logger.info(f"Found {len(instances)} DB instances total")
        return instances

    def list_log_files(self, instance_id: str, filename_contains: str | None = None) -> list[LogFileDetails]:
        """Return every log file reported for an instance. Errors propagate."""
        log_files = []
        marker = None

        while True:
            kwargs = {"DBInstanceIdentifier": instance_id}
            if filename_contains:
                kwargs["FilenameContains"] = filename_contains
            if marker:
                kwargs["Marker"] = marker

            resp = self.client.describe_db_log_files(**kwargs)
            log_files.extend(
                LogFileDetails.model_validate(entry) for entry in resp.get("DescribeDBLogFiles", [])
            )

            marker = resp.get("Marker")
            if not marker:
                break

        logger.debug(f"Found {len(log_files)} log files for DB instance {instance_id}")
        return log_files

    def get_log_file(self, instance_id: str, log_file_name: str) -> LogFileDetails:
        """Look up a single log file by exact name."""
        for details in self.list_log_files(instance_id, filename_contains=log_file_name):
            if details.log_file_name == log_file_name:
                return details
        raise LogFileNotFoundError(instance_id, log_file_name)

    def download_portioned(self, instance_id: str, log_file_name: str) -> PortionedDownload:
        """Fetch a log file portion by portion, starting at marker "0".

        Stops when RDS reports no more pending data. Raises
        PortionedDownloadError when a portion exceeds the per-portion time
        budget, when pending data comes back without a marker, or when the
        portion budget runs out.
        """
        settings = self.settings
        label = f"{instance_id}/{log_file_name}"

        expected_size = self.get_log_file(instance_id, log_file_name).size or None
        if expected_size:
            logger.debug(f"[{label}] Expected log file size: {expected_size} bytes")

        buffer = bytearray()
        marker = START_MARKER
        portions = 0
        line_count = 0

        while True:
            if portions >= settings.max_portions:
                raise PortionedDownloadError(
                    f"[{label}] Gave up after {portions} portions with data still pending"
                )
            portions += 1

            started = self.clock()
            resp = self.client.download_db_log_file_portion(
                DBInstanceIdentifier=instance_id,
                LogFileName=log_file_name,
                Marker=marker,
                NumberOfLines=settings.portion_line_count,
            )
            elapsed = self.clock() - started
            if elapsed > settings.portion_timeout_seconds:
                raise PortionedDownloadError(
                    f"[{label}] Portion {portions} took {elapsed:.1f}s, "
                    f"over the {settings.portion_timeout_seconds}s limit"
                )

            data = (resp.get("LogFileData") or "").encode("utf-8")
            pending = bool(resp.get("AdditionalDataPending"))

            if not data:
                logger.warning(f"[{label}] Received empty portion {portions}")
            else:
                portion_lines = data.count(b"\n")
                line_count += portion_lines
                buffer.extend(data)
                logger.debug(f"[{label}] Downloaded portion {portions}: {len(data)} bytes, {portion_lines} lines")

                # RDS caps a portion at 1MB and silently truncates beyond it
                if len(data) >= settings.max_portion_bytes:
                    logger.warning(
                        f"[{label}] Portion {portions} size ({len(data)} bytes) suggests possible truncation"
                    )

            if not pending:
                break

            marker = resp.get("Marker")
            if not marker:
                raise PortionedDownloadError(f"[{label}] Empty marker with more data pending")

        download = PortionedDownload(
            content=bytes(buffer),
            portions=portions,
            line_count=line_count,
            expected_size=expected_size,
        )
        logger.info(
            f"[{label}] Download complete: {download.total_bytes} bytes in {portions} portions, "
            f"{line_count} lines, md5 {download.checksum}"
        )

        if expected_size and download.total_bytes < expected_size * settings.size_shortfall_ratio:
            logger.warning(
                f"[{label}] Downloaded size ({download.total_bytes} bytes) is significantly less "
                f"than expected size ({expected_size} bytes)"
            )

        return download

    def download_complete(self, instance_id: str, log_file_name: str) -> bytes:
        """Fetch a whole log file in one call (marker "0", zero lines)."""
        resp = self.client.download_db_log_file_portion(
            DBInstanceIdentifier=instance_id,
            LogFileName=log_file_name,
            Marker=START_MARKER,
            NumberOfLines=0,
        )
        data = resp.get("LogFileData")
        if data is None:
            raise PortionedDownloadError(f"[{instance_id}/{log_file_name}] No log file data returned")

        content = data.encode("utf-8")
        logger.debug(f"[{instance_id}/{log_file_name}] Downloaded complete log file: {len(content)} bytes")
        return content
