"""Unit tests for the Rich progress display."""

import io

from rich.console import Console
from rich.text import Text

from spotqueue.cli.progress_manager import ProgressManager


def make_manager() -> ProgressManager:
    return ProgressManager(Console(file=io.StringIO(), force_terminal=False))


class TestItemTasks:
    def test_bracketed_label_is_shown_verbatim(self):
        manager = make_manager()

        task_id = manager.add_item_task("Artist - Song [feat. x]")

        description = manager.progress.tasks[task_id].description
        assert Text.from_markup(description).plain == "Artist - Song [feat. x]"

    def test_long_label_is_truncated_before_escaping(self):
        manager = make_manager()
        label = "[bold]" + "a" * 60

        task_id = manager.add_item_task(label)

        description = manager.progress.tasks[task_id].description
        assert Text.from_markup(description).plain == label[:48] + "…"

    def test_total_and_progress_updates(self):
        manager = make_manager()
        task_id = manager.add_item_task("Song")

        manager.update_task_total(task_id, 100)
        manager.update_task_progress(task_id, 40)

        task = manager.progress.tasks[task_id]
        assert task.total == 100
        assert task.completed == 40

    def test_remove_unknown_task_is_ignored(self):
        manager = make_manager()
        task_id = manager.add_item_task("Song")

        manager.remove_task(task_id)
        manager.remove_task(task_id)
        manager.remove_task(None)

        assert manager.progress.tasks == []


class TestQueueProgress:
    async def test_counts_results_while_live(self):
        manager = make_manager()

        async with manager:
            manager.initialize_session(3)
            manager.record_result("done")
            manager.record_result("failed")
            manager.record_result("skipped")

        stats = manager.get_statistics()
        assert (stats["total_items"], stats["done"], stats["failed"], stats["skipped"]) == (
            3,
            1,
            1,
            1,
        )
        assert manager.overall_progress.tasks[0].completed == 3
