"""Tests for relaying the change feed to the download queue."""

from datetime import datetime, timezone, timedelta

from logbackup.schemas.log_file import LogFileDetails
from logbackup.tasks.feed_tasks import relay_changes


def seed(catalog, count):
    for i in range(count):
        catalog.insert("db1", LogFileDetails(log_file_name=f"audit.log.{i}", size=i, last_written=i))


def test_changes_are_published_in_batches(catalog):
    seed(catalog, 5)
    batches = []

    result = relay_changes(catalog, batches.append, batch_size=2)

    assert [len(batch) for batch in batches] == [2, 2, 1]
    assert result.delivered == 5
    assert result.batches == 3
    assert catalog.undelivered_changes(10) == []
    assert batches[0][0]["event_name"] == "INSERT"


def test_failed_publish_keeps_changes_pending(catalog):
    seed(catalog, 2)

    def publish(events):
        raise ConnectionError("broker unavailable")

    try:
        relay_changes(catalog, publish, batch_size=10)
    except ConnectionError:
        pass

    assert len(catalog.undelivered_changes(10)) == 2


def test_nothing_to_relay(catalog):
    result = relay_changes(catalog, lambda events: None, batch_size=10)

    assert result.delivered == 0


def test_prune_removes_only_relayed_changes_past_the_cutoff(catalog):
    seed(catalog, 3)
    relayed = catalog.undelivered_changes(2)
    catalog.mark_delivered([event["event_id"] for event in relayed])

    deleted = catalog.prune_delivered(datetime.now(timezone.utc) + timedelta(hours=1))

    assert deleted == 2
    [pending] = catalog.undelivered_changes(10)
    assert pending["new_image"]["log_file_name"] == "audit.log.2"


def test_prune_keeps_changes_relayed_within_retention(catalog):
    seed(catalog, 2)
    relay_changes(catalog, lambda events: None, batch_size=10)

    assert catalog.prune_delivered(datetime.now(timezone.utc) - timedelta(hours=24)) == 0
