"""Shared fixtures and in-memory fakes of the streaming service."""

from pathlib import Path

import pytest

from spotqueue.exceptions import (
    AudioStreamError,
    CollectionLookupError,
    ItemUnavailableError,
)
from spotqueue.models.reference import MediaKind, MediaReference, TrackMetadata


def track(item_id: str) -> MediaReference:
    return MediaReference(MediaKind.TRACK, item_id)


def episode(item_id: str) -> MediaReference:
    return MediaReference(MediaKind.EPISODE, item_id)


class FakeAudioStream:
    """Serves bytes in the sizes asked for; can fail after a number of reads."""

    def __init__(self, data: bytes, fail_after_reads: int | None = None):
        self.data = data
        self.position = 0
        self.reads = 0
        self.fail_after_reads = fail_after_reads
        self.closed = False

    @property
    def size(self):
        return len(self.data)

    async def read(self, size: int) -> bytes:
        if self.fail_after_reads is not None and self.reads >= self.fail_after_reads:
            raise AudioStreamError("connection dropped")
        self.reads += 1
        chunk = self.data[self.position : self.position + size]
        self.position += len(chunk)
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Records every call as ``(operation, id)`` in ``calls`` so tests can check
    ordering. Items listed in ``unavailable`` fail metadata lookup; collections
    listed in ``broken`` fail expansion.
    """

    def __init__(
        self,
        members: dict[str, list[MediaReference]] | None = None,
        audio: dict[str, bytes] | None = None,
        unavailable: set[str] | None = None,
        broken: set[str] | None = None,
        failing_streams: dict[str, int] | None = None,
    ):
        self.members = members or {}
        self.audio = audio or {}
        self.unavailable = unavailable or set()
        self.broken = broken or set()
        self.failing_streams = failing_streams or {}
        self.calls: list[tuple[str, str]] = []
        self.streams: list[FakeAudioStream] = []
        self.closed = False

    async def list_members(self, collection: MediaReference) -> list[MediaReference]:
        self.calls.append(("list_members", collection.id))
        if collection.id in self.broken:
            raise CollectionLookupError(f"{collection} could not be listed")
        return list(self.members.get(collection.id, []))

    async def fetch_metadata(self, ref: MediaReference) -> TrackMetadata:
        self.calls.append(("fetch_metadata", ref.id))
        if ref.id in self.unavailable:
            raise ItemUnavailableError(f"{ref} is not available")
        return TrackMetadata(
            title=f"Title {ref.id}", album=f"Album {ref.id}", artists=("Artist",)
        )

    async def open_audio(self, ref: MediaReference) -> FakeAudioStream:
        self.calls.append(("open_audio", ref.id))
        stream = _RecordingStream(
            ref.id,
            self.calls,
            self.audio.get(ref.id, b"OggS" + ref.id.encode() * 16),
            fail_after_reads=self.failing_streams.get(ref.id),
        )
        self.streams.append(stream)
        return stream

    def close(self) -> None:
        self.closed = True


class _RecordingStream(FakeAudioStream):
    def __init__(self, item_id: str, calls: list, data: bytes, fail_after_reads=None):
        super().__init__(data, fail_after_reads=fail_after_reads)
        self.item_id = item_id
        self.calls = calls

    def close(self) -> None:
        self.closed = True
        self.calls.append(("close", self.item_id))


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def sample_metadata():
    return TrackMetadata(title="Song", album="Record", artists=("First", "Second"))


@pytest.fixture
def helper_script(tmp_path):
    """Factory for an executable shell script used as the helper program."""

    def _create(body: str, name: str = "helper.sh") -> Path:
        script = tmp_path / name
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(0o755)
        return script

    return _create


@pytest.fixture
def stored_credentials(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(
        '{"username": "listener", "credentials": "abc",'
        ' "type": "AUTHENTICATION_STORED_SPOTIFY_CREDENTIALS"}'
    )
    return path
