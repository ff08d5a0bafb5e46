"""
Operation history — append-only ledger of registry changes.

Every state-changing operation (install, remove, update, switch)
appends one NDJSON line to history.ndjson. Entries are never modified
or deleted. Failing to write history never fails the operation.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class HistoryEntry(BaseModel):
    """A single history entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation: str = ""            # install, remove, update, switch

    package: str | None = None     # None for update-all
    version: str | None = None
    installer: str | None = None

    status: str = "ok"             # ok, partial, failed
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)


class HistoryWriter:
    """Append-only history ledger writer."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: HistoryEntry) -> None:
        """Append an entry to the ledger."""
        data = entry.model_dump(mode="json")
        line = json.dumps(data, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("History entry written: %s %s", entry.operation, entry.package or "*")
        except OSError as e:
            logger.error("Failed to write history entry: %s", e)

    def read_all(self) -> list[HistoryEntry]:
        """Read all entries, oldest first. Corrupt lines are skipped."""
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
                        entries.append(HistoryEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt history entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read history: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[HistoryEntry]:
        """Read the most recent N entries."""
        if n <= 0:
            return []
        return self.read_all()[-n:]
