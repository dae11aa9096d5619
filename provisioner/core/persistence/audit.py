"""
Audit ledger — append-only record of provisioning runs.

Every install run writes one entry to an NDJSON (newline-delimited
JSON) file: which targets, on which host, how each step ended, and
where it stopped.  Entries never contain credentials; steps only ever
put non-secret metadata into their results.

The ledger is append-only: entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class StepOutcome(BaseModel):
    """Ledger view of one step."""

    step: str
    status: str
    exit_code: int | None = None
    duration_ms: int = 0
    warning: str | None = None


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    operation: str = "install"      # install, db-host-reset

    # What was asked for
    target: str = ""
    webserver: str = ""
    domain: str = ""
    host: str = ""
    virtualization: str = ""

    # Results
    phase: str = ""                 # done, failed
    failed_step: str | None = None
    error: str | None = None
    steps: list[StepOutcome] = Field(default_factory=list)
    duration_ms: int = 0


class AuditWriter:
    """Append-only audit ledger writer.

    Each call to write() appends a single JSON line to the ledger file.
    The file and its directory are created if they don't exist.  A
    ledger that cannot be written is logged, never fatal.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> bool:
        """Append an audit entry to the ledger.

        Returns:
            True if the entry was written.
        """
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)
            return False

        logger.debug("Audit entry written: %s/%s", entry.operation, entry.run_id)
        return True

    def read_all(self) -> list[AuditEntry]:
        """Read all entries from the ledger, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        return self.read_all()[-n:] if n > 0 else []
