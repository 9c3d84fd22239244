"""Tests for the log file detector."""

from botocore.exceptions import ClientError

from logbackup.pipeline.detector import LogFileDetector
from logbackup.schemas.log_file import LogFileDetails
from logbackup.services.catalog import CatalogStore
from logbackup.services.rds_logs import RdsLogSource
from tests.fakes import FakeRdsClient, log_file_entry


def make_detector(settings, catalog, log_file_pages):
    client = FakeRdsClient(log_file_pages=log_file_pages)
    return client, LogFileDetector(RdsLogSource(client, settings), catalog)


def test_new_audit_log_is_inserted(settings, catalog):
    _, detector = make_detector(settings, catalog, {"db1": [[log_file_entry("audit.log", 100, 1000)]]})

    result = detector.process_batch(["db1"])

    record = catalog.get("db1", "audit.log")
    assert record.size == 100
    assert record.last_written == 1000
    assert record.last_backup is None
    assert result.inserted == 1
    assert result.instances[0].audit_files == 1


def test_non_audit_logs_are_ignored(settings, catalog):
    _, detector = make_detector(settings, catalog, {"db1": [[
        log_file_entry("error/mysql-error.log"),
        log_file_entry("random.log"),
        log_file_entry("audit/server_audit.log"),
    ]]})

    result = detector.process_batch(["db1"])

    assert catalog.get("db1", "random.log") is None
    assert catalog.get("db1", "audit/server_audit.log") is not None
    assert result.instances[0].files_seen == 3
    assert result.instances[0].audit_files == 1


def test_changed_file_is_updated_and_keeps_last_backup(settings, catalog):
    catalog.insert("db1", LogFileDetails(log_file_name="audit.log", size=100, last_written=1000))
    catalog.mark_backed_up("db1", "audit.log", 1500)
    _, detector = make_detector(settings, catalog, {"db1": [[log_file_entry("audit.log", 200, 2000)]]})

    result = detector.process_batch(["db1"])

    record = catalog.get("db1", "audit.log")
    assert (record.size, record.last_written, record.last_backup) == (200, 2000, 1500)
    assert result.updated == 1


def test_unchanged_file_is_left_alone(settings, catalog):
    catalog.insert("db1", LogFileDetails(log_file_name="audit.log", size=100, last_written=1000))
    feed_before = len(catalog.undelivered_changes(100))
    _, detector = make_detector(settings, catalog, {"db1": [[log_file_entry("audit.log", 100, 1000)]]})

    result = detector.process_batch(["db1"])

    assert result.instances[0].unchanged == 1
    assert len(catalog.undelivered_changes(100)) == feed_before


def test_repeated_runs_are_idempotent(settings, catalog):
    _, detector = make_detector(settings, catalog, {"db1": [[log_file_entry("audit.log", 100, 1000)]]})

    detector.process_batch(["db1"])
    second = detector.process_batch(["db1"])

    assert second.inserted == 0
    assert second.updated == 0
    assert len(catalog.undelivered_changes(100)) == 1


def test_all_listing_pages_are_processed(settings, catalog):
    _, detector = make_detector(settings, catalog, {"db1": [
        [log_file_entry("audit/server_audit.log")],
        [log_file_entry("audit/server_audit.log.1")],
        [log_file_entry("audit/server_audit.log.2")],
    ]})

    result = detector.process_batch(["db1"])

    assert result.inserted == 3


def test_listing_failure_skips_only_that_instance(settings, catalog):
    client, detector = make_detector(settings, catalog, {
        "db1": [[log_file_entry("audit.log")]],
        "db2": [[log_file_entry("audit.log")]],
    })
    client.errors[("describe_db_log_files", "db1")] = ClientError(
        {"Error": {"Code": "DBInstanceNotFound", "Message": "gone"}}, "DescribeDBLogFiles"
    )

    result = detector.process_batch(["db1", "db2"])

    assert result.failed_instances == ["db1"]
    assert catalog.get("db1", "audit.log") is None
    assert catalog.get("db2", "audit.log") is not None


def test_per_file_error_skips_only_that_file(settings, catalog, monkeypatch):
    _, detector = make_detector(settings, catalog, {"db1": [[
        log_file_entry("audit.log"),
        log_file_entry("audit/server_audit.log"),
    ]]})
    original_insert = catalog.insert

    def flaky_insert(instance_id, details):
        if details.log_file_name == "audit.log":
            raise RuntimeError("database went away")
        return original_insert(instance_id, details)

    monkeypatch.setattr(catalog, "insert", flaky_insert)

    result = detector.process_batch(["db1"])

    assert result.instances[0].errors == 1
    assert result.instances[0].inserted == 1
    assert catalog.get("db1", "audit/server_audit.log") is not None


class LookupMissesCatalog(CatalogStore):
    """Catalog whose lookups run before a concurrent detector's insert lands."""

    def get(self, instance_id, log_file_name):
        return None


def test_insert_lost_to_concurrent_detector_counts_as_unchanged(settings, session_factory):
    catalog = CatalogStore(session_factory)
    catalog.insert("db1", LogFileDetails(log_file_name="audit.log", size=100, last_written=1000))
    _, detector = make_detector(
        settings, LookupMissesCatalog(session_factory), {"db1": [[log_file_entry("audit.log", 100, 1000)]]}
    )

    result = detector.process_batch(["db1"])

    stats = result.instances[0]
    assert (stats.inserted, stats.unchanged, stats.errors) == (0, 1, 0)
    assert len(catalog.undelivered_changes(10)) == 1
