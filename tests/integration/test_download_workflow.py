"""Integration tests for the sequential download driver."""

import io
import logging

import pytest
from conftest import FakeSession, episode, track
from rich.console import Console

from spotqueue.cli.progress_manager import ProgressManager
from spotqueue.core.download_driver import DownloadDriver, ItemState
from spotqueue.media.sinks import FileSink, HelperProcessSink
from spotqueue.models.reference import DownloadQueue, TrackMetadata
from spotqueue.models.stats import DownloadStats


@pytest.fixture
def file_sink(tmp_path):
    return FileSink(tmp_path / "music", chunk_size=4096)


def assert_strictly_serial(calls):
    """Each item's calls must all precede the next item's first call."""
    seen = []
    for _, item_id in calls:
        if not seen or seen[-1] != item_id:
            assert item_id not in seen, f"{item_id} resumed after another item started"
            seen.append(item_id)


class TestDownloadDriver:
    async def test_downloads_in_order(self, file_sink, tmp_path):
        session = FakeSession()
        queue = DownloadQueue([track("AAA"), episode("EEE"), track("BBB")])

        results = await DownloadDriver(session, file_sink).run(queue)

        assert [r.state for r in results] == [ItemState.DONE] * 3
        assert [r.reference.id for r in results] == ["AAA", "EEE", "BBB"]
        assert sorted(p.name for p in (tmp_path / "music").iterdir()) == [
            "Artist - Title AAA.ogg",
            "Artist - Title BBB.ogg",
            "Artist - Title EEE.ogg",
        ]

    async def test_long_title_is_written(self, file_sink, tmp_path, monkeypatch):
        session = FakeSession()
        fetch = session.fetch_metadata

        async def long_title(ref):
            metadata = await fetch(ref)
            return TrackMetadata(
                title="あ" * 200, album=metadata.album, artists=metadata.artists
            )

        monkeypatch.setattr(session, "fetch_metadata", long_title)

        results = await DownloadDriver(session, file_sink).run(
            DownloadQueue([track("LONG"), track("AAA")])
        )

        assert [r.state for r in results] == [ItemState.DONE, ItemState.DONE]
        names = [p.name for p in (tmp_path / "music").iterdir()]
        assert len(names) == 1
        assert names[0].endswith(".ogg")

    async def test_items_never_overlap(self, file_sink):
        session = FakeSession()
        queue = DownloadQueue([track(f"T{i}") for i in range(5)])

        await DownloadDriver(session, file_sink).run(queue)

        assert_strictly_serial(session.calls)
        fetches = [item for op, item in session.calls if op == "fetch_metadata"]
        assert fetches == ["T0", "T1", "T2", "T3", "T4"]
        # The stream of item n is closed before item n+1 is fetched.
        for i in range(4):
            closed = session.calls.index(("close", f"T{i}"))
            next_fetch = session.calls.index(("fetch_metadata", f"T{i + 1}"))
            assert closed < next_fetch

    async def test_failed_metadata_is_skipped(self, file_sink, caplog):
        session = FakeSession(unavailable={"BAD"})
        queue = DownloadQueue([track("BAD"), track("GOOD")])

        with caplog.at_level(logging.ERROR, logger="spotqueue"):
            results = await DownloadDriver(session, file_sink).run(queue)

        assert results[0].state == ItemState.FAILED
        assert "not available" in results[0].error
        assert results[1].state == ItemState.DONE
        assert ("open_audio", "BAD") not in session.calls
        assert "Failed" in caplog.text

    async def test_stream_failure_continues(self, file_sink, tmp_path):
        session = FakeSession(failing_streams={"MID": 1})
        queue = DownloadQueue([track("FIRST"), track("MID"), track("LAST")])

        results = await DownloadDriver(session, file_sink).run(queue)

        assert [r.state for r in results] == [
            ItemState.DONE,
            ItemState.FAILED,
            ItemState.DONE,
        ]
        names = {p.name for p in (tmp_path / "music").iterdir()}
        assert names == {"Artist - Title FIRST.ogg", "Artist - Title LAST.ogg"}
        assert all(stream.closed for stream in session.streams)

    async def test_helper_failure_continues(self, helper_script):
        script = helper_script('cat > /dev/null\n[ "$1" = "BAD" ] && exit 1\nexit 0')
        session = FakeSession()
        queue = DownloadQueue([track("BAD"), track("OK")])

        results = await DownloadDriver(session, HelperProcessSink(str(script))).run(queue)

        assert results[0].state == ItemState.FAILED
        assert "exit code 1" in results[0].error
        assert results[1].state == ItemState.DONE

    async def test_unexpected_error_continues(self, file_sink):
        session = FakeSession()
        original = session.fetch_metadata

        async def flaky_fetch(ref):
            if ref.id == "ODD":
                raise RuntimeError("surprise")
            return await original(ref)

        session.fetch_metadata = flaky_fetch
        queue = DownloadQueue([track("ODD"), track("EVEN")])

        results = await DownloadDriver(session, file_sink).run(queue)

        assert results[0].state == ItemState.FAILED
        assert results[1].state == ItemState.DONE

    async def test_skip_existing_does_not_open_audio(self, tmp_path):
        music = tmp_path / "music"
        music.mkdir()
        (music / "Artist - Title AAA.ogg").write_bytes(b"already here")
        session = FakeSession()
        sink = FileSink(music, skip_existing=True)

        results = await DownloadDriver(session, sink).run(
            DownloadQueue([track("AAA"), track("BBB")])
        )

        assert [r.state for r in results] == [ItemState.SKIPPED, ItemState.DONE]
        assert ("open_audio", "AAA") not in session.calls
        assert (music / "Artist - Title AAA.ogg").read_bytes() == b"already here"

    async def test_stats_are_tallied(self, file_sink):
        session = FakeSession(unavailable={"BAD"}, audio={"AAA": b"x" * 100})
        stats = DownloadStats()

        await DownloadDriver(session, file_sink, stats).run(
            DownloadQueue([track("AAA"), track("BAD")])
        )

        assert stats.items_total == 2
        assert stats.items_done == 1
        assert stats.items_failed == 1
        assert stats.bytes_written == 100
        assert stats.items_finished == 2

    async def test_empty_queue(self, file_sink):
        session = FakeSession()

        results = await DownloadDriver(session, file_sink).run(DownloadQueue())

        assert results == []
        assert session.calls == []

    async def test_with_progress_manager(self, file_sink):
        console = Console(file=io.StringIO(), force_terminal=False)
        session = FakeSession(unavailable={"BAD"})

        async with ProgressManager(console) as progress_manager:
            await DownloadDriver(session, file_sink, progress_manager=progress_manager).run(
                DownloadQueue([track("AAA"), track("BAD"), track("CCC")])
            )
            progress_stats = progress_manager.get_statistics()

        assert progress_stats["total_items"] == 3
        assert progress_stats["done"] == 2
        assert progress_stats["failed"] == 1
