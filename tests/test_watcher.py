#!/usr/bin/env python3
"""
Tests for the live project watcher
"""

import os
import tempfile
import time
import unittest
from pathlib import Path
from unittest.mock import MagicMock, Mock

from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent
from watchdog.observers.polling import PollingObserver

from ark.exceptions import IgnoreBuildError
from ark.options import FilterOptions
from ark.watcher import DirtyFlag, ProjectSnapshot, ProjectWatcher, scan_project


def wait_for(predicate, timeout=5.0, step=0.05):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


class TestDirtyFlag(unittest.TestCase):

    def test_swap_returns_previous(self):
        flag = DirtyFlag()
        self.assertFalse(flag.is_set())
        flag.set()
        self.assertTrue(flag.swap(False))
        self.assertFalse(flag.swap(False))
        self.assertFalse(flag.is_set())


class TestScanProject(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()
        (self.root / ".gitignore").write_text("*.log\n")
        (self.root / "main.go").write_text("package main\n")
        (self.root / "app.log").write_text("")
        (self.root / "pkg").mkdir()
        (self.root / "pkg" / "util.go").write_text("package pkg\n")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_snapshot_contents(self):
        snapshot = scan_project(str(self.root))
        self.assertIn(str(self.root / "main.go"), snapshot.files)
        self.assertIn(str(self.root / "pkg" / "util.go"), snapshot.files)
        self.assertNotIn(str(self.root / "app.log"), snapshot.files)
        self.assertEqual(snapshot.directories, (str(self.root), str(self.root / "pkg")))

    def test_filters_applied(self):
        snapshot = scan_project(str(self.root), FilterOptions(exclude_dir="pkg"))
        self.assertEqual(snapshot.files, (str(self.root / ".gitignore"), str(self.root / "main.go")))


class TestProjectWatcher(unittest.TestCase):
    """Event triage and refresh logic with a mocked observer"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()
        (self.root / ".gitignore").write_text("*.log\n")
        (self.root / "main.go").write_text("package main\n")
        (self.root / "sub").mkdir()

        self.observer = MagicMock()
        self.watcher = ProjectWatcher(str(self.root), observer_factory=lambda: self.observer)

    def tearDown(self):
        self.watcher.stop()
        self.temp_dir.cleanup()

    def path(self, *parts):
        return str(self.root.joinpath(*parts))

    def test_initial_snapshot_is_lazy(self):
        scan = Mock(return_value=ProjectSnapshot(None, ("a",), ()))
        watcher = ProjectWatcher(str(self.root), scan=scan)
        scan.assert_not_called()
        self.assertEqual(watcher.get_allowed(), ("a",))
        self.assertEqual(watcher.get_allowed(), ("a",))
        scan.assert_called_once_with(str(self.root))

    def test_admitted_event_marks_dirty(self):
        self.watcher.handle_event(FileCreatedEvent(self.path("new.go")))
        self.assertTrue(self.watcher.should_refresh())

    def test_ignored_path_does_not_mark_dirty(self):
        self.watcher.handle_event(FileModifiedEvent(self.path("trace.log")))
        self.assertFalse(self.watcher.should_refresh())

    def test_git_directory_events_ignored(self):
        self.watcher.handle_event(FileModifiedEvent(self.path(".git", "index")))
        self.assertFalse(self.watcher.should_refresh())

    def test_access_events_ignored(self):
        event = Mock(event_type="opened", src_path=self.path("main.go"), is_directory=False)
        self.watcher.handle_event(event)
        self.assertFalse(self.watcher.should_refresh())

    def test_move_into_admitted_name(self):
        event = FileMovedEvent(self.path("draft.log"), self.path("draft.go"))
        self.watcher.handle_event(event)
        self.assertTrue(self.watcher.should_refresh())

    def test_refresh_only_when_dirty(self):
        self.assertFalse(self.watcher.refresh_if_dirty())

        (self.root / "new.go").write_text("package main\n")
        self.watcher.mark_dirty()
        self.assertTrue(self.watcher.refresh_if_dirty())
        self.assertIn(self.path("new.go"), self.watcher.get_allowed())
        self.assertFalse(self.watcher.should_refresh())

    def test_old_snapshot_is_not_mutated(self):
        before = self.watcher.snapshot
        (self.root / "new.go").write_text("package main\n")
        self.watcher.mark_dirty()
        self.watcher.refresh_if_dirty()
        self.assertNotIn(self.path("new.go"), before.files)
        self.assertIsNot(before, self.watcher.snapshot)

    def test_failed_refresh_stays_dirty(self):
        scan = Mock(side_effect=[
            ProjectSnapshot(None, (), ()),
            IgnoreBuildError(str(self.root), "Permission denied"),
        ])
        watcher = ProjectWatcher(str(self.root), scan=scan)
        watcher.get_allowed()
        watcher.mark_dirty()
        with self.assertRaises(IgnoreBuildError):
            watcher.refresh_if_dirty()
        self.assertTrue(watcher.should_refresh())

    def test_start_schedules_every_directory_non_recursively(self):
        self.watcher.start()
        scheduled = [c.args[1] for c in self.observer.schedule.call_args_list]
        self.assertEqual(sorted(scheduled), [self.path(), self.path("sub")])
        for call in self.observer.schedule.call_args_list:
            self.assertFalse(call.kwargs["recursive"])
        self.observer.start.assert_called_once()

    def test_new_directory_is_registered_once(self):
        self.watcher.start()
        (self.root / "fresh").mkdir()
        event = DirCreatedEvent(self.path("fresh"))
        self.watcher.handle_event(event)
        self.watcher.handle_event(event)

        self.assertIn(self.path("fresh"), self.watcher.get_watched_paths())
        scheduled = [c.args[1] for c in self.observer.schedule.call_args_list]
        self.assertEqual(scheduled.count(self.path("fresh")), 1)

    def test_stop(self):
        self.watcher.start()
        self.watcher.stop()
        self.observer.stop.assert_called_once()
        self.observer.join.assert_called_once()
        self.assertEqual(self.watcher.get_watched_paths(), [])
        self.assertFalse(self.watcher.is_running())


class TestWatcherIntegration(unittest.TestCase):
    """Real filesystem events through a polling observer"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name).resolve()
        (self.root / "main.go").write_text("package main\n")
        self.watcher = ProjectWatcher(
            str(self.root),
            interval=0.05,
            observer_factory=lambda: PollingObserver(timeout=0.1),
        )

    def tearDown(self):
        self.watcher.stop()
        self.temp_dir.cleanup()

    def test_new_files_appear(self):
        with self.watcher:
            self.assertTrue(self.watcher.is_running())
            target = self.root / "added.go"
            target.write_text("package main\n")
            self.assertTrue(wait_for(lambda: str(target) in self.watcher.get_allowed()))

    def test_files_in_new_directory_appear(self):
        with self.watcher:
            nested = self.root / "nested"
            nested.mkdir()
            self.assertTrue(wait_for(lambda: str(nested) in self.watcher.get_watched_paths()))
            # let the new emitter take its first snapshot
            time.sleep(0.3)

            target = nested / "deep.go"
            target.write_text("package nested\n")
            self.assertTrue(wait_for(lambda: str(target) in self.watcher.get_allowed()))

    def test_deleted_files_disappear(self):
        with self.watcher:
            os.remove(self.root / "main.go")
            self.assertTrue(wait_for(lambda: not self.watcher.get_allowed()))


if __name__ == "__main__":
    unittest.main()
