"""Integration tests for groups, commits, history and restore."""

from pathlib import Path

import pytest

from snap_cli.core.identity import hasher, identify
from snap_cli.core.models import INITIAL_COMMIT_MESSAGE
from snap_cli.errors import (
    CrossFileInconsistency,
    FileNotTracked,
    GroupAlreadyTracked,
    GroupNotFound,
    IOFailure,
    VersionNotFound,
)
from snap_cli.version.version_control import VersionController


class TestGroupInit:
    """Tests for creating groups."""

    def test_fresh_group_state(self, controller: VersionController):
        group = controller.group_init("test-group")

        assert group.group_id == hasher("test-group")
        assert group.group_name == "test-group"
        assert len(group.version_order) == 1
        assert len(group.versions) == 1
        assert group.current
        assert group.current_version.commit_message == INITIAL_COMMIT_MESSAGE
        assert group.current_version.files == {}

    def test_group_init_twice_fails(self, controller: VersionController):
        controller.group_init("test-group")
        with pytest.raises(GroupAlreadyTracked):
            controller.group_init("test-group")

    @pytest.mark.parametrize("name", ["mygroup", "my-group", "my_group", "group123"])
    def test_group_names(self, controller: VersionController, name: str):
        controller.group_init(name)
        assert controller.get_group(name).group_name == name

    def test_multiple_groups(self, controller: VersionController):
        for name in ("group1", "group2", "group3"):
            controller.group_init(name)
        assert controller.group_names() == ["group1", "group2", "group3"]

    def test_unknown_group_raises(self, controller: VersionController):
        with pytest.raises(GroupNotFound):
            controller.get_group("nope")
        with pytest.raises(GroupNotFound):
            controller.commit("nope", "msg")


class TestTracking:
    """Tests for the tracker registry through the controller."""

    def test_update_tracked_file_overwrites(self, controller: VersionController):
        controller.update_tracked_file("test-file-id", "/path/to/original/file.txt")
        controller.update_tracked_file("test-file-id", "/path/to/updated/file.txt")

        registry = controller.tracked_files()

        assert len(registry) == 1
        assert registry.get("test-file-id").current_path == "/path/to/updated/file.txt"

    def test_update_multiple_files(self, controller: VersionController):
        files = {"file1": "/path/to/file1.txt", "file2": "/path/to/file2.go", "file3": "/path/to/file3.md"}
        for identifier, path in files.items():
            controller.update_tracked_file(identifier, path)

        registry = controller.tracked_files()

        assert {k: r.current_path for k, r in registry.items()} == files

    def test_track_file_records_relative_path(self, controller: VersionController, write_file):
        path = write_file("docs/notes.txt", "hello")

        record = controller.track_file(path)

        assert record.identifier == identify("notes.txt")
        assert record.current_path == "docs/notes.txt"

    def test_track_missing_file_fails(self, controller: VersionController, tmp_path: Path):
        with pytest.raises(IOFailure):
            controller.track_file(tmp_path / "missing.txt")

    def test_registry_rebuilt_by_scan_when_missing(self, controller: VersionController, write_file):
        path = write_file("docs/notes.txt", "hello")
        controller.group_init("docs")
        controller.group_track("docs", path)
        controller.repo.tracker_path.unlink()

        registry = controller.tracked_files()

        assert registry.get(identify("notes.txt")).current_path == "docs/notes.txt"
        assert controller.repo.tracker_path.exists()


class TestCommit:
    """Tests for committing group versions."""

    @pytest.fixture
    def tracked(self, controller: VersionController, write_file) -> Path:
        path = write_file("notes.txt", "first\n")
        controller.group_init("docs")
        controller.group_track("docs", path)
        return path

    def test_commit_appends_and_advances_current(self, controller: VersionController, tracked: Path):
        version = controller.commit("docs", "first commit")

        group = controller.get_group("docs")
        assert group.current == version.version_id
        assert group.version_order[-1] == version.version_id
        assert len(group.version_order) == 2
        assert set(version.files) == {identify("notes.txt")}

    def test_committed_content_is_retrievable(self, controller: VersionController, tracked: Path):
        version = controller.commit("docs", "first commit")
        ref = version.files[identify("notes.txt")]
        assert controller.store.get(ref) == b"first\n"

    def test_unchanged_content_shares_object(self, controller: VersionController, tracked: Path):
        first = controller.commit("docs", "one")
        second = controller.commit("docs", "two")
        tracked.write_text("changed\n")
        third = controller.commit("docs", "three")

        file_id = identify("notes.txt")
        assert first.files[file_id] == second.files[file_id]
        assert third.files[file_id] != second.files[file_id]

    def test_commit_updates_tracker_stats(self, controller: VersionController, tracked: Path):
        controller.commit("docs", "one")
        version = controller.commit("docs", "two")

        record = controller.tracked_files().get(identify("notes.txt"))
        assert record.commit_count == 2
        assert record.last_commit_message == "two"
        assert record.last_commit_timestamp == version.timestamp

    def test_history_is_oldest_first(self, controller: VersionController, tracked: Path):
        controller.commit("docs", "one")
        controller.commit("docs", "two")

        messages = [v.commit_message for v in controller.history("docs")]
        assert messages == [INITIAL_COMMIT_MESSAGE, "one", "two"]
        assert [v.commit_message for v in controller.history("docs", max_count=1)] == ["two"]
        assert controller.history("docs", max_count=0) == []
        assert len(controller.history("docs", max_count=10)) == 3

    def test_version_lookup(self, controller: VersionController, tracked: Path):
        version = controller.commit("docs", "one")

        assert controller.version_at("docs", version.version_id) == version
        assert controller.current("docs") == version
        with pytest.raises(VersionNotFound):
            controller.version_at("docs", "missing")
        with pytest.raises(VersionNotFound):
            controller.find_version("missing")

    def test_commit_explicit_untracked_file_fails(self, controller: VersionController, tracked: Path, write_file):
        other = write_file("other.txt", "x")
        with pytest.raises(FileNotTracked):
            controller.commit("docs", "msg", files=[other])

    def test_commit_explicit_subset_adds_member(self, controller: VersionController, tracked: Path, write_file):
        other = write_file("other.txt", "x")
        controller.track_file(other)

        version = controller.commit("docs", "msg", files=[other])

        assert set(version.files) == {identify("other.txt")}
        assert identify("other.txt") in controller.get_group("docs").members

    def test_repeated_file_counts_one_commit(self, controller: VersionController, tracked: Path):
        version = controller.commit("docs", "once", files=[tracked, tracked])

        record = controller.tracked_files().get(identify("notes.txt"))
        assert record.commit_count == 1
        assert list(version.files) == [identify("notes.txt")]

    def test_commit_follows_moved_file(self, controller: VersionController, tracked: Path, tmp_path: Path):
        controller.commit("docs", "before move")
        (tmp_path / "moved").mkdir()
        tracked.rename(tmp_path / "moved" / "notes.txt")

        controller.commit("docs", "after move")

        record = controller.tracked_files().get(identify("notes.txt"))
        assert record.current_path == "moved/notes.txt"
        assert record.commit_count == 2

    def test_commit_missing_file_fails(self, controller: VersionController, tracked: Path):
        tracked.unlink()
        with pytest.raises(IOFailure):
            controller.commit("docs", "gone")

    def test_registry_failure_after_history_is_reported(
        self, controller: VersionController, tracked: Path, monkeypatch: pytest.MonkeyPatch
    ):
        def broken_save(registry):
            raise IOFailure("disk full")

        monkeypatch.setattr(controller, "_save_tracked", broken_save)

        with pytest.raises(CrossFileInconsistency):
            controller.commit("docs", "half done")

        # History was persisted, stats were not
        assert controller.current("docs").commit_message == "half done"
        assert controller.tracked_files().get(identify("notes.txt")).commit_count == 0


class TestRestore:
    """Tests for restoring file content from a version."""

    def test_restore_writes_old_content(self, controller: VersionController, write_file):
        path = write_file("notes.txt", "original\n")
        controller.group_init("docs")
        controller.group_track("docs", path)
        version = controller.commit("docs", "one")
        path.write_text("edited\n")

        controller.restore(path, version.version_id)

        assert path.read_text() == "original\n"
        # Restoring does not create a version
        assert len(controller.history("docs")) == 2

    def test_restore_from_version_without_file(self, controller: VersionController, write_file):
        path = write_file("notes.txt", "x")
        group = controller.group_init("docs")
        controller.group_track("docs", path)

        with pytest.raises(FileNotTracked):
            controller.restore(path, group.current)
