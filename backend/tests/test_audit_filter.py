"""Tests for the audit log name filter."""

import pytest

from logbackup.pipeline.detector import is_audit_log


@pytest.mark.parametrize("name", [
    "audit.log",
    "audit/server_audit.log",
    "error/mysql-audit.log",
    "auditXYZ",
    "audit/server_audit.log.2026-10-19-10-00.0",
])
def test_audit_logs_pass(name):
    assert is_audit_log(name)


@pytest.mark.parametrize("name", [
    "random.log",
    "error/mysql-error.log",
    "slowquery/mysql-slowquery.log",
    "audi",
    "",
    "my-audit.log",
])
def test_other_logs_fail(name):
    assert not is_audit_log(name)
