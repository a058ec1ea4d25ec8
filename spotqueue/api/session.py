"""
Capability interfaces the pipeline depends on.

The core only talks to these protocols; the librespot backend in
``spotqueue.api.client`` is one implementation, and the test suite provides
in-memory ones.
"""

from typing import Optional, Protocol, runtime_checkable

from spotqueue.models.reference import MediaReference, TrackMetadata


@runtime_checkable
class AudioStream(Protocol):
    """A byte source for one playable item, owned by the driver until closed."""

    @property
    def size(self) -> Optional[int]:
        """Total size in bytes, if the backend knows it."""
        ...

    async def read(self, size: int) -> bytes:
        """Returns up to ``size`` bytes; an empty result means end of stream."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class MetadataLookup(Protocol):
    """Lists the members of a playlist, album or show."""

    async def list_members(self, collection: MediaReference) -> list[MediaReference]:
        """Returns the collection's playable members in its canonical order."""
        ...


@runtime_checkable
class StreamingSession(MetadataLookup, Protocol):
    """An authenticated handle to the streaming service."""

    async def fetch_metadata(self, ref: MediaReference) -> TrackMetadata: ...

    async def open_audio(self, ref: MediaReference) -> AudioStream: ...

    def close(self) -> None: ...
