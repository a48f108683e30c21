"""
Audit ledger for composition runs.

One NDJSON line per ``depcompose plan`` run, appended to
``.state/audit.ndjson`` next to the plan file.  Lines are never
rewritten, so the ledger shows which plan the executor was handed when.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "audit.ndjson"


def _now() -> str:
    return datetime.now(UTC).isoformat()


class AuditEntry(BaseModel):
    """What one composition run produced."""

    timestamp: str = Field(default_factory=_now)
    operation_id: str = ""
    operation_type: str = ""  # plan

    workspace: str = ""
    status: str = ""  # ok | partial | failed
    best_effort: bool = False

    modules_total: int = 0
    batches_total: int = 0
    modules_dropped: list[str] = Field(default_factory=list)
    strict_keys: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status in ("ok", "partial")


class AuditWriter:
    """Appends to and reads back one workspace's audit ledger."""

    def __init__(self, path: Path | None = None, workspace_root: Path | None = None):
        root = workspace_root if workspace_root is not None else Path()
        self._path = path if path is not None else root / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append ``entry``; creates the ledger on first use.

        A ledger that cannot be written is logged, never fatal: the plan
        file is already on disk by the time the run is audited.
        """
        line = entry.model_dump_json() + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Could not append to audit ledger %s: %s", self._path, e)
            return
        logger.debug("Audited %s %s (%s)", entry.operation_type, entry.operation_id, entry.status)

    def _entries(self) -> Iterator[AuditEntry]:
        if not self._path.is_file():
            return
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, raw in enumerate(f, start=1):
                if not raw.strip():
                    continue
                try:
                    yield AuditEntry.model_validate(json.loads(raw))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning("%s:%d: skipping corrupt audit entry (%s)", self._path, line_num, e)

    def read_all(self) -> list[AuditEntry]:
        """Every readable entry, oldest first."""
        try:
            return list(self._entries())
        except OSError as e:
            logger.error("Could not read audit ledger %s: %s", self._path, e)
            return []

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:]

    def last_successful(self) -> AuditEntry | None:
        """The newest run that produced a plan, if any."""
        for entry in reversed(self.read_all()):
            if entry.succeeded:
                return entry
        return None
