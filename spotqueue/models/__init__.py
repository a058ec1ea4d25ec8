"""
Data Models Layer.

This package contains the value types that flow through the pipeline, the
Pydantic configuration model and the run statistics.
"""

from .config import DownloadConfig
from .reference import DownloadQueue, MediaKind, MediaReference, TrackMetadata
from .stats import DownloadStats

__all__ = [
    "DownloadConfig",
    "DownloadQueue",
    "DownloadStats",
    "MediaKind",
    "MediaReference",
    "TrackMetadata",
]
