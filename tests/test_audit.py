"""Tests for cadence.data.audit: audit log helpers."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from cadence.data.audit import write_audit_entry


class TestWriteAuditEntry:
    def test_creates_file_and_writes_entry(self, tmp_path: Path) -> None:
        audit_file = tmp_path / "audit" / "store.jsonl"
        write_audit_entry(audit_file, "upsert_log", goal_id="g1", status="done")
        entry = json.loads(audit_file.read_text().strip())
        assert entry["action"] == "upsert_log"
        assert entry["goal_id"] == "g1"
        assert entry["status"] == "done"
        assert "timestamp" in entry

    def test_appends_multiple_entries(self, tmp_path: Path) -> None:
        audit_file = tmp_path / "log.jsonl"
        for n in range(3):
            write_audit_entry(audit_file, "tick", n=n)
        lines = audit_file.read_text().strip().split("\n")
        assert len(lines) == 3
        assert json.loads(lines[2])["n"] == 2

    def test_handles_datetime_serialization(self, tmp_path: Path) -> None:
        audit_file = tmp_path / "dt.jsonl"
        now = datetime.now(UTC)
        write_audit_entry(audit_file, "import_backup", backup_timestamp=now)
        entry = json.loads(audit_file.read_text().strip())
        assert str(now) in entry["backup_timestamp"]
