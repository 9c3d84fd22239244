"""Tests for the re-download decision."""

from logbackup.pipeline.downloader import should_download
from logbackup.schemas.log_file import LogFileImage

NOW = 1_800_000_000
DAY = 24 * 60 * 60


def image(**values):
    base = {"instance_id": "db1", "log_file_name": "audit.log", "size": 100, "last_written": 1000}
    base.update(values)
    return LogFileImage.model_validate(base)


def test_size_change_downloads():
    assert should_download(image(last_backup=NOW), image(size=200, last_backup=NOW), NOW, DAY)


def test_last_written_change_downloads():
    assert should_download(image(last_backup=NOW), image(last_written=2000, last_backup=NOW), NOW, DAY)


def test_never_backed_up_downloads():
    assert should_download(image(), image(), NOW, DAY)


def test_stale_backup_downloads():
    stale = NOW - DAY - 1
    assert should_download(image(last_backup=stale), image(last_backup=stale), NOW, DAY)


def test_fresh_unchanged_record_is_skipped():
    fresh = NOW - 60
    assert not should_download(image(last_backup=NOW - 3600), image(last_backup=fresh), NOW, DAY)


def test_backup_exactly_at_threshold_is_fresh():
    edge = NOW - DAY
    assert not should_download(image(last_backup=edge), image(last_backup=edge), NOW, DAY)


def test_unparseable_field_forces_download():
    assert should_download(image(last_backup=NOW), image(size="n/a", last_backup=NOW), NOW, DAY)
    assert should_download(image(last_written="??", last_backup=NOW), image(last_backup=NOW), NOW, DAY)
    assert should_download(image(last_backup=NOW), image(last_backup="yesterday"), NOW, DAY)


def test_missing_old_image_uses_backup_age():
    assert not should_download(None, image(last_backup=NOW), NOW, DAY)
    assert should_download(None, image(), NOW, DAY)


def test_custom_threshold():
    last = NOW - 120
    assert should_download(image(last_backup=last), image(last_backup=last), NOW, 60)
