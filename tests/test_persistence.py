"""
Tests for persistence — the audit ledger.
"""

import json
from pathlib import Path

from provisioner.core.persistence.audit import AuditEntry, AuditWriter, StepOutcome


class TestAuditWriter:
    """Tests for the append-only audit ledger."""

    def test_write_and_read(self, tmp_path: Path):
        """Entries roundtrip through write/read_all."""
        writer = AuditWriter(tmp_path / "audit.ndjson")
        entry = AuditEntry(
            run_id="run-1",
            target="panel",
            phase="done",
            steps=[StepOutcome(step="baseline", status="ok", duration_ms=12)],
        )
        assert writer.write(entry)

        entries = writer.read_all()
        assert len(entries) == 1
        assert entries[0].run_id == "run-1"
        assert entries[0].steps[0].step == "baseline"

    def test_append_only(self, tmp_path: Path):
        """Each write appends exactly one line."""
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        for i in range(3):
            writer.write(AuditEntry(run_id=f"run-{i}"))

        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert [json.loads(line)["run_id"] for line in lines] == ["run-0", "run-1", "run-2"]

    def test_creates_directories(self, tmp_path: Path):
        """Write creates parent directories automatically."""
        path = tmp_path / "var" / "log" / "provisioner" / "audit.ndjson"
        assert AuditWriter(path).write(AuditEntry(run_id="r"))
        assert path.is_file()

    def test_timestamp_set(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        writer.write(AuditEntry(run_id="r"))
        assert writer.read_all()[0].timestamp

    def test_missing_file_reads_empty(self, tmp_path: Path):
        assert AuditWriter(tmp_path / "nope.ndjson").read_all() == []

    def test_corrupt_line_skipped(self, tmp_path: Path):
        """A corrupt line is skipped, the rest still loads."""
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(run_id="good-1"))
        with path.open("a") as f:
            f.write("not json {{{\n\n")
        writer.write(AuditEntry(run_id="good-2"))

        assert [e.run_id for e in writer.read_all()] == ["good-1", "good-2"]

    def test_unwritable_path(self, tmp_path: Path):
        """A ledger that cannot be written returns False instead of raising."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        writer = AuditWriter(blocker / "audit.ndjson")
        assert writer.write(AuditEntry(run_id="r")) is False

    def test_path_property(self, tmp_path: Path):
        assert AuditWriter(str(tmp_path / "a.ndjson")).path == tmp_path / "a.ndjson"

    def test_read_recent(self, tmp_path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        for i in range(5):
            writer.write(AuditEntry(run_id=f"run-{i}"))
        assert [e.run_id for e in writer.read_recent(2)] == ["run-3", "run-4"]
        assert len(writer.read_recent(50)) == 5
        assert writer.read_recent(0) == []
