"""
Partial-success batch bookkeeping.

Batch endpoints (form sync, bulk submission sync) fold over their items and
never fail the whole request because of a subset of bad items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Keep responses small when a payload is mostly garbage.
MAX_REPORTED_ERRORS = 50


@dataclass
class BatchResult:
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def record_success(self) -> None:
        self.processed += 1
        self.succeeded += 1

    def record_skip(self, index: int, reason: str | None = None) -> None:
        """
        Count an item as skipped. A reason turns it into a reported error;
        silent skips (e.g. refreshed rows) pass None.
        """
        self.processed += 1
        self.skipped += 1
        if reason and len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append({"index": index, "error": reason})
