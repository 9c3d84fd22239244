"""Incremental backup of Aurora MySQL audit logs to S3."""

__version__ = "0.1.0"
