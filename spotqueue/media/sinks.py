"""
Destinations for downloaded audio: an .ogg file per item, or a helper program
that receives the audio on its standard input.

One sink is selected per run with ``create_sink`` and reused for every item.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import aiofiles

from spotqueue.api.session import AudioStream
from spotqueue.exceptions import HelperProcessError
from spotqueue.models.config import DEFAULT_CHUNK_SIZE, DownloadConfig
from spotqueue.models.reference import MediaReference, TrackMetadata
from spotqueue.utils.path import build_filename, create_dir

log = logging.getLogger(__name__)

# Called with the number of bytes handed to the sink so far for the current item.
ProgressCallback = Callable[[int], None]


class Sink(ABC):
    """Consumes the audio of one item at a time."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def exists(self, ref: MediaReference, metadata: TrackMetadata) -> bool:
        """Whether the item's output is already present and should be skipped."""
        return False

    @abstractmethod
    async def consume(
        self,
        ref: MediaReference,
        metadata: TrackMetadata,
        stream: AudioStream,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Drains ``stream`` into the destination.

        Returns:
            The number of bytes written.
        """

    async def _chunks(self, stream: AudioStream):
        while chunk := await stream.read(self.chunk_size):
            yield chunk


class FileSink(Sink):
    """Writes '<artists> - <title>.ogg' files into an output directory."""

    def __init__(
        self,
        output_dir: Path,
        skip_existing: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        super().__init__(chunk_size)
        self.output_dir = output_dir
        self.skip_existing = skip_existing

    def target_path(self, metadata: TrackMetadata) -> Path:
        return self.output_dir / build_filename(metadata)

    def exists(self, ref: MediaReference, metadata: TrackMetadata) -> bool:
        return self.skip_existing and self.target_path(metadata).is_file()

    async def consume(
        self,
        ref: MediaReference,
        metadata: TrackMetadata,
        stream: AudioStream,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        final_path = self.target_path(metadata)
        # Named by id only; the final name may already be at the length limit.
        temp_path = self.output_dir / f".{ref.id}.part"
        create_dir(self.output_dir)

        bytes_written = 0
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                async for chunk in self._chunks(stream):
                    await f.write(chunk)
                    bytes_written += len(chunk)
                    if on_progress:
                        on_progress(bytes_written)
            # Replaces an existing file of the same name.
            os.replace(temp_path, final_path)
        finally:
            if temp_path.exists():
                try:
                    os.remove(temp_path)
                except OSError:
                    log.debug(f"Could not remove partial file '{temp_path}'.")

        log.info(f"Filename: {final_path.name}")
        return bytes_written


class HelperProcessSink(Sink):
    """
    Pipes audio into an external program invoked as
    ``<helper> <id> <title> <album> <artist>...``.
    """

    def __init__(self, helper_path: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(chunk_size)
        self.helper_path = helper_path

    def build_args(self, ref: MediaReference, metadata: TrackMetadata) -> list[str]:
        return [
            self.helper_path,
            ref.id,
            metadata.title,
            metadata.album,
            *metadata.artists,
        ]

    async def consume(
        self,
        ref: MediaReference,
        metadata: TrackMetadata,
        stream: AudioStream,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        args = self.build_args(ref, metadata)
        try:
            process = await asyncio.create_subprocess_exec(
                *args, stdin=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise HelperProcessError(
                f"Could not run helper program '{self.helper_path}': {e}"
            ) from e

        bytes_written = 0
        try:
            async for chunk in self._chunks(stream):
                process.stdin.write(chunk)
                await process.stdin.drain()
                bytes_written += len(chunk)
                if on_progress:
                    on_progress(bytes_written)
            process.stdin.close()
            await process.stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError) as e:
            # The helper stopped reading; its exit status tells us why.
            log.debug(f"Helper closed its input early: {e}")
        except BaseException:
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise

        returncode = await process.wait()
        if returncode != 0:
            raise HelperProcessError(
                f"Helper program returned an error (exit code {returncode})."
            )
        log.debug(f"Helper finished for {ref} ({bytes_written} bytes).")
        return bytes_written


def create_sink(config: DownloadConfig) -> Sink:
    """Selects the sink for this run from the configuration."""
    if helper_path := config.helper_path:
        log.debug(f"Piping audio to helper program: {helper_path}")
        return HelperProcessSink(helper_path, chunk_size=config.chunk_size)
    output_dir = Path(config.output_dir).expanduser()
    log.debug(f"Writing audio files to: {output_dir}")
    return FileSink(
        output_dir, skip_existing=config.skip_existing, chunk_size=config.chunk_size
    )
