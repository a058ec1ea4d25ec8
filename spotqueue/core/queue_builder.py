"""
Builds the download queue from lines of input.
"""

import logging
from collections.abc import Iterable

from rich.markup import escape

from spotqueue.exceptions import InputStreamError
from spotqueue.models.reference import DownloadQueue, MediaReference
from spotqueue.utils.path import parse_reference

from .expander import CollectionExpander

log = logging.getLogger(__name__)

SENTINEL = "done"


class QueueBuilder:
    """
    Accumulates references in input order until a 'done' line or the end of
    input, expanding collections as they are encountered.
    """

    def __init__(self, expander: CollectionExpander):
        self.expander = expander
        self._items: list[MediaReference] = []
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def __len__(self) -> int:
        return len(self._items)

    async def append_line(self, line: str) -> bool:
        """
        Processes one input line.

        Returns:
            False once the sentinel has been seen; later lines are ignored.
        """
        if self._finished:
            return False

        text = line.strip()
        if text == SENTINEL:
            self._finished = True
            return False

        ref = parse_reference(text)
        if ref is None:
            if text:
                log.debug(f"Ignoring line without a link: {escape(text)}")
            return True

        if ref.is_playable:
            self._items.append(ref)
        else:
            self._items.extend(await self.expander.expand(ref))
        return True

    def freeze(self) -> DownloadQueue:
        """Ends input and returns the queue in its final order."""
        self._finished = True
        return DownloadQueue(self._items)

    async def build(self, lines: Iterable[str]) -> DownloadQueue:
        """
        Consumes ``lines`` up to the sentinel or the end of input.

        Raises:
            InputStreamError: If reading the input fails.
        """
        try:
            for line in lines:
                if not await self.append_line(line):
                    break
        except (OSError, UnicodeDecodeError) as e:
            raise InputStreamError(f"Could not read input: {e}") from e

        queue = self.freeze()
        log.info(f"Queued {len(queue)} items.")
        return queue
