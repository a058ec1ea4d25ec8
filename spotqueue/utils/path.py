"""
Utilities for handling file paths, output file names, and link parsing.
"""

import re
from pathlib import Path
from typing import Optional

from pathvalidate import sanitize_filename

from spotqueue.models.reference import MediaKind, MediaReference, TrackMetadata

_KINDS = "|".join(kind.value for kind in MediaKind)

# open.<service>.com/[intl-xx/]<kind>/<id>  or  <service>:<kind>:<id>
# The URI branch also covers legacy "spotify:user:<name>:playlist:<id>" links.
LINK_PATTERN = re.compile(
    r"open\.[A-Za-z0-9-]+\.com/(?:intl-[A-Za-z-]+/)?"
    rf"(?P<url_kind>{_KINDS})/(?P<url_id>[A-Za-z0-9]+)"
    r"|(?<![A-Za-z0-9/.])[A-Za-z0-9-]+:"
    rf"(?P<uri_kind>{_KINDS}):(?P<uri_id>[A-Za-z0-9]+)"
)

OUTPUT_EXTENSION = "ogg"
MAX_FILENAME_BYTES = 255


def parse_reference(line: str) -> Optional[MediaReference]:
    """
    Extracts the first streaming-service link found on a line of text.

    Returns None for text without a recognizable link; that is not an error.
    """
    match = LINK_PATTERN.search(line)
    if not match:
        return None
    kind = match.group("url_kind") or match.group("uri_kind")
    item_id = match.group("url_id") or match.group("uri_id")
    return MediaReference(MediaKind(kind), item_id)


def build_filename(metadata: TrackMetadata, ext: str = OUTPUT_EXTENSION) -> str:
    """
    Builds '<artist1, artist2, ...> - <title>.<ext>' with characters that are
    invalid on the current platform removed.
    """
    suffix = f".{ext}"
    # Truncation cuts from the end, so the extension is added afterwards.
    stem = sanitize_filename(
        f"{metadata.artist_line} - {metadata.title}",
        platform="auto",
        max_len=MAX_FILENAME_BYTES - len(suffix.encode("utf-8")),
    )
    return f"{stem}{suffix}"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)
