"""
Value types for references, metadata and the download queue.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class MediaKind(str, Enum):
    """The five link types understood by the parser."""

    TRACK = "track"
    EPISODE = "episode"
    PLAYLIST = "playlist"
    ALBUM = "album"
    SHOW = "show"

    @property
    def is_playable(self) -> bool:
        return self in (MediaKind.TRACK, MediaKind.EPISODE)

    @property
    def is_collection(self) -> bool:
        return not self.is_playable


@dataclass(frozen=True)
class MediaReference:
    """A typed identifier extracted from a link."""

    kind: MediaKind
    id: str

    def __post_init__(self):
        if not self.id:
            raise ValueError("A media reference needs a non-empty id.")

    @property
    def is_playable(self) -> bool:
        return self.kind.is_playable

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind.value}:{self.id}"

    def __str__(self) -> str:
        return self.uri


@dataclass(frozen=True)
class TrackMetadata:
    """
    Metadata fetched for one playable item right before it is downloaded.

    For episodes, ``album`` holds the show name and ``artists`` the publisher.
    """

    title: str
    album: str
    artists: tuple[str, ...]

    def __post_init__(self):
        # Accept any iterable of names but store an immutable tuple.
        object.__setattr__(self, "artists", tuple(self.artists))
        if not self.artists:
            raise ValueError(f"Track '{self.title}' has no artists.")

    @property
    def artist_line(self) -> str:
        return ", ".join(self.artists)


class DownloadQueue:
    """
    An ordered, read-only sequence of playable references.

    Order is the order of insertion; duplicates are kept.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[MediaReference] = ()):
        items = tuple(items)
        for ref in items:
            if not ref.is_playable:
                raise ValueError(f"Only tracks and episodes can be queued: {ref}")
        self._items: tuple[MediaReference, ...] = items

    def __iter__(self) -> Iterator[MediaReference]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> MediaReference:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DownloadQueue):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"DownloadQueue({[ref.id for ref in self._items]!r})"

    @property
    def ids(self) -> list[str]:
        return [ref.id for ref in self._items]
