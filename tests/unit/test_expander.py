"""Unit tests for collection expansion."""

import logging
from unittest.mock import AsyncMock

import pytest
from conftest import FakeSession, episode, track

from spotqueue.core.expander import CollectionExpander
from spotqueue.models.reference import MediaKind, MediaReference


class TestCollectionExpander:
    async def test_preserves_member_order(self):
        members = [track("T3"), track("T1"), track("T2")]
        session = FakeSession(members={"ALB": members})

        result = await CollectionExpander(session).expand(
            MediaReference(MediaKind.ALBUM, "ALB")
        )

        assert result == members

    async def test_show_members_are_episodes(self):
        members = [episode("E1"), episode("E2")]
        session = FakeSession(members={"SHW": members})

        result = await CollectionExpander(session).expand(
            MediaReference(MediaKind.SHOW, "SHW")
        )

        assert result == members

    async def test_empty_collection(self):
        result = await CollectionExpander(FakeSession()).expand(
            MediaReference(MediaKind.PLAYLIST, "EMPTY")
        )

        assert result == []

    async def test_lookup_failure_yields_nothing(self, caplog):
        session = FakeSession(broken={"BAD"})

        with caplog.at_level(logging.ERROR, logger="spotqueue"):
            result = await CollectionExpander(session).expand(
                MediaReference(MediaKind.PLAYLIST, "BAD")
            )

        assert result == []
        assert "Could not expand playlist BAD" in caplog.text

    async def test_unexpected_error_yields_nothing(self):
        lookup = AsyncMock()
        lookup.list_members.side_effect = RuntimeError("boom")

        result = await CollectionExpander(lookup).expand(
            MediaReference(MediaKind.ALBUM, "ALB")
        )

        assert result == []

    async def test_rejects_playable_reference(self):
        with pytest.raises(ValueError):
            await CollectionExpander(FakeSession()).expand(track("AAA"))
