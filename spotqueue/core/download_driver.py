"""
Downloads the queue one item at a time: metadata, then audio, then the sink.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.markup import escape

from spotqueue.api.session import AudioStream, StreamingSession
from spotqueue.cli.progress_manager import ProgressManager
from spotqueue.exceptions import SpotQueueError
from spotqueue.media.sinks import Sink
from spotqueue.models.reference import DownloadQueue, MediaReference, TrackMetadata
from spotqueue.models.stats import DownloadStats
from spotqueue.utils.formatting import describe_item, format_size

log = logging.getLogger(__name__)


class ItemState(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ItemResult:
    """The outcome of one queue position."""

    position: int
    reference: MediaReference
    state: ItemState = ItemState.PENDING
    metadata: Optional[TrackMetadata] = None
    bytes_written: int = 0
    error: Optional[str] = None

    @property
    def label(self) -> str:
        return describe_item(self.reference, self.metadata)


class DownloadDriver:
    """
    Drives the queue strictly in order. An item is finished (done, failed or
    skipped) before the next one is fetched; a failed item never stops the run.
    """

    def __init__(
        self,
        session: StreamingSession,
        sink: Sink,
        stats: Optional[DownloadStats] = None,
        progress_manager: Optional[ProgressManager] = None,
    ):
        self.session = session
        self.sink = sink
        self.stats = stats or DownloadStats()
        self.progress_manager = progress_manager

    async def run(self, queue: DownloadQueue) -> list[ItemResult]:
        """Processes every queue item and returns their results in queue order."""
        self.stats.items_total = len(queue)
        if self.progress_manager:
            self.progress_manager.initialize_session(len(queue))

        results = []
        for position, ref in enumerate(queue, start=1):
            result = await self._process_item(position, ref)
            self._record(result)
            results.append(result)
        return results

    async def _process_item(self, position: int, ref: MediaReference) -> ItemResult:
        result = ItemResult(position=position, reference=ref)
        total = self.stats.items_total
        log.info(f"Getting {ref.kind.value} {escape(ref.id)}... [dim]({position}/{total})[/dim]")

        result.state = ItemState.FETCHING
        try:
            result.metadata = await self.session.fetch_metadata(ref)
        except Exception as e:
            return self._fail(result, e)

        if self.sink.exists(ref, result.metadata):
            result.state = ItemState.SKIPPED
            log.info(
                f"  [yellow]○ Skipping:[/] [dim]{escape(result.label)}[/dim] (already exists)"
            )
            return result

        result.state = ItemState.STREAMING
        task_id = None
        if self.progress_manager:
            task_id = self.progress_manager.add_item_task(result.label)

        stream: Optional[AudioStream] = None
        try:
            stream = await self.session.open_audio(ref)
            if self.progress_manager and stream.size:
                self.progress_manager.update_task_total(task_id, stream.size)

            def on_progress(completed: int) -> None:
                if self.progress_manager:
                    self.progress_manager.update_task_progress(task_id, completed)

            result.bytes_written = await self.sink.consume(
                ref, result.metadata, stream, on_progress
            )
        except Exception as e:
            return self._fail(result, e)
        finally:
            if stream is not None:
                stream.close()
            if self.progress_manager:
                self.progress_manager.remove_task(task_id)

        result.state = ItemState.DONE
        log.info(
            f"  [green]✓ Done:[/] {escape(result.label)} "
            f"[dim]({format_size(result.bytes_written)})[/dim]"
        )
        return result

    def _fail(self, result: ItemResult, error: Exception) -> ItemResult:
        result.state = ItemState.FAILED
        result.error = str(error)
        label = escape(result.label)
        if isinstance(error, SpotQueueError):
            log.error(f"  [red]✗ Failed:[/] {label} ({escape(str(error))})")
        elif isinstance(error, OSError):
            log.error(f"  [red]✗ I/O error for[/] {label}: {escape(str(error))}")
        else:
            log.error(
                f"  [red]✗ An unexpected error occurred for[/] {label}: {escape(str(error))}",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
        return result

    def _record(self, result: ItemResult) -> None:
        if result.state == ItemState.DONE:
            self.stats.items_done += 1
            self.stats.bytes_written += result.bytes_written
        elif result.state == ItemState.SKIPPED:
            self.stats.items_skipped += 1
        else:
            self.stats.items_failed += 1

        if self.progress_manager:
            self.progress_manager.record_result(result.state.value)
