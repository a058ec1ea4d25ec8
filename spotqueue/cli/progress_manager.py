"""
Manages a Rich progress display for the sequential download run: one bar for
the queue as a whole and one for the item currently streaming.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

log = logging.getLogger("spotqueue")


class ProgressManager:
    """Tracks overall queue progress and per-item byte progress."""

    def __init__(self, console: Console):
        self.console = console

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )
        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID | None = None
        self._stats: dict[str, Any] = {
            "total_items": 0,
            "done": 0,
            "failed": 0,
            "skipped": 0,
            "start_time": None,
        }

    def initialize_session(self, total_items: int) -> None:
        self._stats["total_items"] = total_items
        self._stats["start_time"] = datetime.now()
        self._overall_task_id = self.overall_progress.add_task(
            "Queue", total=total_items, start=True
        )

    def add_item_task(self, description: str, total_size: int | None = None) -> TaskID:
        """Adds a byte bar for one item; the label is shown as plain text."""
        if len(description) > 50:
            description = description[:48] + "…"
        return self.progress.add_task(
            escape(description), total=total_size, start=True
        )

    def update_task_total(self, task_id: TaskID | None, total: int) -> None:
        if task_id is not None:
            self.progress.update(task_id, total=total)

    def update_task_progress(self, task_id: TaskID | None, completed: int) -> None:
        if task_id is not None:
            self.progress.update(task_id, completed=completed)

    def remove_task(self, task_id: TaskID | None) -> None:
        if task_id is None:
            return
        try:
            self.progress.remove_task(task_id)
        except KeyError:
            pass

    def record_result(self, state: str) -> None:
        """Counts a finished item ('done', 'failed' or 'skipped')."""
        if state in self._stats:
            self._stats[state] += 1
        if self._overall_task_id is not None:
            self.overall_progress.advance(self._overall_task_id)

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        self._live = Live(
            Group(self.overall_progress, self.progress),
            console=self.console,
            refresh_per_second=10,
            transient=True,
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.1)
            self._live.stop()
