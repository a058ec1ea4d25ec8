"""
librespot-backed implementation of the streaming-session and metadata-lookup
capabilities.

librespot is synchronous; every blocking call is moved to a worker thread with
``asyncio.to_thread`` so the event loop stays responsive for progress output.
The pipeline still awaits one call at a time.
"""

import asyncio
import logging
from contextlib import suppress
from typing import Any, Optional

from librespot.audio.decoders import AudioQuality, VorbisOnlyAudioQuality
from librespot.metadata import AlbumId, EpisodeId, PlaylistId, ShowId, TrackId

from spotqueue.exceptions import (
    AudioStreamError,
    CollectionLookupError,
    ItemUnavailableError,
)
from spotqueue.models.reference import MediaKind, MediaReference, TrackMetadata
from spotqueue.utils.path import parse_reference

log = logging.getLogger(__name__)

QUALITY_TO_LIBRESPOT = {
    "normal": AudioQuality.NORMAL,
    "high": AudioQuality.HIGH,
    "very_high": AudioQuality.VERY_HIGH,
}


class LibrespotAudioStream:
    """Adapts a librespot loaded stream to the AudioStream protocol."""

    def __init__(self, loaded_stream: Any):
        self._input = loaded_stream.input_stream
        self._raw = self._input.stream()

    @property
    def size(self) -> Optional[int]:
        return getattr(self._input, "size", None)

    async def read(self, size: int) -> bytes:
        try:
            return await asyncio.to_thread(self._raw.read, size)
        except Exception as e:
            raise AudioStreamError(f"Audio stream interrupted: {e}") from e

    def close(self) -> None:
        with suppress(Exception):
            self._raw.close()


class LibrespotSession:
    """
    An authenticated librespot session exposing metadata, collection members
    and audio streams for tracks and episodes.
    """

    def __init__(self, session: Any, quality: str = "very_high"):
        """
        Args:
            session: A connected ``librespot.core.Session``.
            quality: One of 'normal', 'high' or 'very_high'.
        """
        self._session = session
        self._quality = QUALITY_TO_LIBRESPOT.get(quality, AudioQuality.VERY_HIGH)

    def close(self) -> None:
        """Closes the underlying connection."""
        with suppress(Exception):
            self._session.close()
        log.debug("librespot session closed.")

    # Playable items
    async def fetch_metadata(self, ref: MediaReference) -> TrackMetadata:
        try:
            if ref.kind == MediaKind.EPISODE:
                return await asyncio.to_thread(self._episode_metadata, ref.id)
            track = await asyncio.to_thread(self._resolve_track, ref.id)
        except ItemUnavailableError:
            raise
        except Exception as e:
            raise ItemUnavailableError(f"Could not get metadata for {ref}: {e}") from e

        return TrackMetadata(
            title=track.name,
            album=track.album.name,
            artists=[artist.name for artist in track.artist],
        )

    async def open_audio(self, ref: MediaReference) -> LibrespotAudioStream:
        try:
            if ref.kind == MediaKind.EPISODE:
                playable_id = EpisodeId.from_base62(ref.id)
            else:
                track = await asyncio.to_thread(self._resolve_track, ref.id)
                playable_id = TrackId.from_hex(track.gid.hex())
            loaded = await asyncio.to_thread(
                self._session.content_feeder().load,
                playable_id,
                VorbisOnlyAudioQuality(self._quality),
                False,
                None,
            )
        except Exception as e:
            raise AudioStreamError(f"Could not open audio for {ref}: {e}") from e
        return LibrespotAudioStream(loaded)

    # Collections
    async def list_members(self, collection: MediaReference) -> list[MediaReference]:
        handlers = {
            MediaKind.ALBUM: self._album_members,
            MediaKind.PLAYLIST: self._playlist_members,
            MediaKind.SHOW: self._show_members,
        }
        handler = handlers.get(collection.kind)
        if handler is None:
            raise CollectionLookupError(f"{collection} is not a collection.")
        try:
            return await asyncio.to_thread(handler, collection.id)
        except Exception as e:
            raise CollectionLookupError(
                f"Could not list the contents of {collection}: {e}"
            ) from e

    def _resolve_track(self, track_id: str) -> Any:
        """
        Fetches track metadata, falling back to the first alternative release
        that has audio when the requested one has none.
        """
        api = self._session.api()
        track = api.get_metadata_4_track(TrackId.from_base62(track_id))
        if track.file:
            return track

        log.warning(f"Track {track_id} is not available, finding alternative...")
        for alternative in track.alternative:
            alt_track = api.get_metadata_4_track(TrackId.from_hex(alternative.gid.hex()))
            if alt_track.file:
                alt_id = TrackId.from_hex(alt_track.gid.hex()).to_spotify_uri()
                log.warning(f"Found track alternative {track_id} -> {alt_id}")
                return alt_track

        raise ItemUnavailableError(f"Could not find alternative for track {track_id}")

    def _episode_metadata(self, episode_id: str) -> TrackMetadata:
        episode = self._session.api().get_metadata_4_episode(
            EpisodeId.from_base62(episode_id)
        )
        return TrackMetadata(
            title=episode.name,
            album=episode.show.name,
            artists=[episode.show.publisher or episode.show.name],
        )

    def _album_members(self, album_id: str) -> list[MediaReference]:
        album = self._session.api().get_metadata_4_album(AlbumId.from_base62(album_id))
        return [
            _reference_from_uri(TrackId.from_hex(track.gid.hex()).to_spotify_uri())
            for disc in album.disc
            for track in disc.track
        ]

    def _playlist_members(self, playlist_id: str) -> list[MediaReference]:
        playlist = self._session.api().get_playlist(PlaylistId(playlist_id))
        members = []
        for item in playlist.contents.items:
            ref = parse_reference(item.uri)
            if ref is None or not ref.is_playable:
                # Local files and other entries that cannot be streamed.
                log.debug(f"Skipping playlist entry '{item.uri}'.")
                continue
            members.append(ref)
        return members

    def _show_members(self, show_id: str) -> list[MediaReference]:
        show = self._session.api().get_metadata_4_show(ShowId.from_base62(show_id))
        # Episodes come back newest first; queue them oldest first.
        return [
            _reference_from_uri(EpisodeId.from_hex(episode.gid.hex()).to_spotify_uri())
            for episode in list(show.episode)[::-1]
        ]


def _reference_from_uri(uri: str) -> MediaReference:
    ref = parse_reference(uri)
    if ref is None:
        raise CollectionLookupError(f"Unexpected member URI: {uri}")
    return ref
