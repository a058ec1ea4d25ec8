"""
Expands playlist, album and show references into their playable members.
"""

import logging

from rich.markup import escape

from spotqueue.api.session import MetadataLookup
from spotqueue.models.reference import MediaReference

log = logging.getLogger(__name__)


class CollectionExpander:
    """Turns a collection reference into an ordered list of track or episode references."""

    def __init__(self, lookup: MetadataLookup):
        self.lookup = lookup

    async def expand(self, ref: MediaReference) -> list[MediaReference]:
        """
        Lists the members of a collection in the order the lookup returns them.

        A failed lookup is logged and yields an empty list so that the rest of
        the input is still processed.
        """
        if not ref.kind.is_collection:
            raise ValueError(f"{ref} is not a playlist, album or show.")

        log.info(f"Getting {ref.kind.value} {escape(ref.id)}...")
        try:
            members = await self.lookup.list_members(ref)
        except Exception as e:
            log.error(f"[red]✗ Could not expand {ref.kind.value} {escape(ref.id)}: {escape(str(e))}[/red]")
            return []

        members = list(members)
        log.info(f"  {ref.kind.value.capitalize()} {escape(ref.id)}: {len(members)} items.")
        return members
