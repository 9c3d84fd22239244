"""Pipeline stages: scan instances, detect log file changes, download changed files."""

from logbackup.pipeline.scanner import InstanceScanner  # noqa: F401
from logbackup.pipeline.detector import LogFileDetector, is_audit_log  # noqa: F401
from logbackup.pipeline.downloader import LogFileDownloader, should_download  # noqa: F401
