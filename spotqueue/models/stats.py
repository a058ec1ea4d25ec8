"""
Dataclass for tallying the outcome of a download run.
"""

import time
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Counts per-item outcomes. Informational only; never affects the exit code."""

    items_total: int = 0
    items_done: int = 0
    items_failed: int = 0
    items_skipped: int = 0
    bytes_written: int = 0
    dry_run: bool = False
    started_at: float = field(default_factory=time.monotonic, repr=False)

    @property
    def items_finished(self) -> int:
        return self.items_done + self.items_failed + self.items_skipped

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at
