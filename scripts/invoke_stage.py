#!/usr/bin/env python3
"""Run one pipeline stage in-process against the configured AWS account.

Useful for checking a deployment by hand without waiting for beat or the
queues. Reads the same environment / .env settings as the workers.

Usage:
    python scripts/invoke_stage.py init-db
    python scripts/invoke_stage.py scan
    python scripts/invoke_stage.py detect my-aurora-instance-1
    python scripts/invoke_stage.py download my-aurora-instance-1 audit/server_audit.log
"""

import sys
from pathlib import Path

# Add backend to path when running as script
backend_dir = Path(__file__).resolve().parent.parent / "backend"
if backend_dir.exists():
    sys.path.insert(0, str(backend_dir))

import argparse
import json
import logging

from logbackup.config import get_settings
from logbackup.models.base import Base, get_session_factory, get_sync_engine
from logbackup.pipeline.detector import LogFileDetector
from logbackup.pipeline.downloader import LogFileDownloader
from logbackup.pipeline.scanner import InstanceScanner
from logbackup.schemas.change_event import INSERT
from logbackup.services.archive import ArchiveStore
from logbackup.services.aws import get_rds_client, get_s3_client
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import RdsLogSource


def init_db(args) -> dict:
    Base.metadata.create_all(get_sync_engine())
    return {"tables": sorted(Base.metadata.tables)}


def scan(args) -> dict:
    settings = get_settings()
    source = RdsLogSource(get_rds_client(settings), settings)
    # Print instead of enqueueing so a manual scan has no side effects
    scanner = InstanceScanner(settings, source, publish=lambda instance_id: print(f"  would queue {instance_id}"))
    return scanner.run().model_dump()


def detect(args) -> dict:
    settings = get_settings()
    detector = LogFileDetector(
        source=RdsLogSource(get_rds_client(settings), settings),
        catalog=CatalogStore(get_session_factory()),
    )
    return detector.process_batch(args.instance_ids).model_dump()


def download(args) -> dict:
    settings = get_settings()
    if args.verify:
        settings = settings.model_copy(update={"verify_full_download": True})

    source = RdsLogSource(get_rds_client(settings), settings)
    catalog = CatalogStore(get_session_factory())
    if catalog.get(args.instance_id, args.log_file_name) is None:
        catalog.insert(args.instance_id, source.get_log_file(args.instance_id, args.log_file_name))

    downloader = LogFileDownloader(
        settings=settings,
        source=source,
        archive=ArchiveStore(get_s3_client(settings), settings.archive_bucket, settings.archive_prefix),
        catalog=catalog,
    )
    event = {
        "event_name": INSERT,
        "keys": {"instance_id": args.instance_id, "log_file_name": args.log_file_name},
        "new_image": {"instance_id": args.instance_id, "log_file_name": args.log_file_name},
    }
    return downloader.process_batch([event]).model_dump()


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="stage", required=True)

    subparsers.add_parser("init-db", help="Create catalog tables").set_defaults(func=init_db)
    subparsers.add_parser("scan", help="List audited instances").set_defaults(func=scan)

    detect_parser = subparsers.add_parser("detect", help="Sync the catalog for instances")
    detect_parser.add_argument("instance_ids", nargs="+")
    detect_parser.set_defaults(func=detect)

    download_parser = subparsers.add_parser("download", help="Back up one log file now")
    download_parser.add_argument("instance_id")
    download_parser.add_argument("log_file_name")
    download_parser.add_argument("--verify", action="store_true", help="Cross-check with a full download")
    download_parser.set_defaults(func=download)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("botocore").setLevel(logging.WARNING)

    result = args.func(args)
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
