"""
Streaming Service Layer.

This package defines the capabilities the pipeline needs from the streaming
service and implements them on top of librespot.
"""

from .auth import SpotifyAuthenticator
from .client import LibrespotAudioStream, LibrespotSession
from .session import AudioStream, MetadataLookup, StreamingSession

__all__ = [
    "AudioStream",
    "LibrespotAudioStream",
    "LibrespotSession",
    "MetadataLookup",
    "SpotifyAuthenticator",
    "StreamingSession",
]
