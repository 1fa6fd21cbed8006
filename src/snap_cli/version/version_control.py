"""
Group version control for tracked files.

Each group keeps a linear, append-only history of versions. A commit stores
the content of every included file in the object store, appends a version to
the group and updates per-file commit statistics in the tracker registry.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..core.identity import hasher, identify
from ..core.models import Group, ObjectRef, TrackedFile, Version
from ..core.object_store import atomic_write
from ..core.repository import Repository
from ..errors import (
    CrossFileInconsistency,
    FileNotTracked,
    GroupAlreadyTracked,
    GroupNotFound,
    IOFailure,
    SnapError,
    VersionNotFound,
)
from ..tracker.registry import GroupTracker, TrackerRegistry, scan
from ..tracker.scanner import EntryKind, walk

PathLike = Union[str, Path]


class VersionController:
    """
    Linear version history for named groups of files.

    Nothing is cached between calls: every operation loads the registries it
    needs, applies its change and persists the result.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.store = repo.object_store()
        self.logger = logging.getLogger(__name__)

    # Registry access

    def _load_groups(self) -> GroupTracker:
        return GroupTracker.load(self.store, self.repo.group_tracker_path)

    def _save_groups(self, groups: GroupTracker) -> None:
        groups.save(self.store, self.repo.group_tracker_path)

    def _save_tracked(self, registry: TrackerRegistry) -> None:
        registry.save(self.store, self.repo.tracker_path)

    def tracked_files(self) -> TrackerRegistry:
        """
        Load the tracker registry, rebuilding it by a scan if the file is gone.

        The rebuilt registry is persisted straight away so later calls read
        the file instead of walking the tree again.
        """
        self.repo.ensure_initialized()
        if self.repo.tracker_path.exists():
            return TrackerRegistry.load(self.store, self.repo.tracker_path)

        self.logger.info(f"{self.repo.tracker_path} missing, rebuilding from the working tree")
        known = self._load_groups().known_identifiers()
        registry = scan(self.repo.root, known, self.repo.config, relative_to=self.repo.root)
        self._save_tracked(registry)
        return registry

    # Tracking

    def update_tracked_file(self, identifier: str, path: PathLike) -> TrackedFile:
        """Insert or overwrite the recorded path for ``identifier``."""
        registry = self.tracked_files()
        record = registry.upsert(identifier, self.repo.relative(Path(path)))
        self._save_tracked(registry)
        return record

    def track_file(self, path: PathLike) -> TrackedFile:
        """
        Start tracking a file.

        Args:
            path: Regular file inside or outside the working tree

        Returns:
            The file's tracking record

        Raises:
            IOFailure: If ``path`` is not a regular file
        """
        self.repo.ensure_initialized()
        file_path = Path(path)
        if not file_path.is_file():
            raise IOFailure(f"{file_path} is not a regular file")

        record = self.update_tracked_file(identify(file_path), file_path)
        self.logger.info(f"Tracking {record.current_path}")
        return record

    # Groups

    @staticmethod
    def _require(groups: GroupTracker, group_name: str) -> Group:
        group = groups.get(hasher(group_name))
        if group is None:
            raise GroupNotFound(f"Group {group_name!r} is not tracked")
        return group

    def get_group(self, group_name: str) -> Group:
        self.repo.ensure_initialized()
        return self._require(self._load_groups(), group_name)

    def group_init(self, group_name: str) -> Group:
        """
        Start a new group with a single empty "Initial Tracking" version.

        Raises:
            RepoNotFound: If the repository is not initialized
            GroupAlreadyTracked: If a group with this name exists
        """
        self.repo.ensure_initialized()
        groups = self._load_groups()
        group_id = hasher(group_name)
        if group_id in groups:
            raise GroupAlreadyTracked(f"Group {group_name!r} is already tracked")

        group = Group.initial(group_id, group_name)
        groups.put(group)
        self._save_groups(groups)
        self.logger.info(f"Initialized group {group_name} at version {group.current}")
        return group

    def group_track(self, group_name: str, path: PathLike) -> Group:
        """Track a file and add it to a group's members."""
        self.get_group(group_name)
        record = self.track_file(path)

        groups = self._load_groups()
        updated = self._require(groups, group_name).with_member(record.identifier)
        groups.put(updated)
        self._save_groups(groups)
        return updated

    def group_names(self) -> List[str]:
        self.repo.ensure_initialized()
        return sorted(group.group_name for group in self._load_groups().values())

    # History lookup

    def current(self, group_name: str) -> Version:
        return self.get_group(group_name).current_version

    def version_at(self, group_name: str, version_id: str) -> Version:
        group = self.get_group(group_name)
        version = group.versions.get(version_id)
        if version is None:
            raise VersionNotFound(f"Version {version_id} not found in group {group_name!r}")
        return version

    def history(self, group_name: str, max_count: Optional[int] = None) -> List[Version]:
        """Versions of a group, oldest first; ``max_count`` keeps the newest ones."""
        versions = self.get_group(group_name).history()
        if max_count is not None:
            versions = versions[max(len(versions) - max_count, 0):]
        return versions

    def find_version(self, version_id: str) -> Tuple[Group, Version]:
        """Locate a version by id across all groups."""
        self.repo.ensure_initialized()
        for group in self._load_groups().values():
            version = group.versions.get(version_id)
            if version is not None:
                return group, version
        raise VersionNotFound(f"Version {version_id} not found")

    def last_committed_ref(self, identifier: str) -> Optional[Tuple[Version, ObjectRef]]:
        """Newest version in any group that holds ``identifier``, with its object."""
        latest: Optional[Tuple[Version, ObjectRef]] = None
        for group in self._load_groups().values():
            for version in reversed(group.history()):
                ref = version.ref_for(identifier)
                if ref is None:
                    continue
                if latest is None or version.timestamp > latest[0].timestamp:
                    latest = (version, ref)
                break
        return latest

    # Commit

    def _locate(self, identifier: str) -> Optional[Path]:
        """Find a moved file by walking the working tree."""
        for entry in walk(self.repo.root, self.repo.config.scan_exclusions):
            if entry.kind is EntryKind.FILE and identify(entry.path.name) == identifier:
                return entry.path
        return None

    def _read_tracked(self, registry: TrackerRegistry, identifier: str) -> bytes:
        record = registry.get(identifier)
        if record is None:
            raise FileNotTracked(f"No tracking record for identifier {identifier[:12]}")

        path = self.repo.absolute(record.current_path)
        if not path.is_file():
            moved = self._locate(identifier)
            if moved is None:
                raise IOFailure(f"Tracked file {record.current_path} no longer exists")
            self.logger.info(f"{record.current_path} moved to {moved}")
            path = moved
            registry.upsert(identifier, self.repo.relative(moved))

        try:
            return path.read_bytes()
        except OSError as e:
            raise IOFailure(f"Could not read {path}: {e}") from e

    def commit(
        self,
        group_name: str,
        message: str,
        files: Optional[Iterable[PathLike]] = None,
    ) -> Version:
        """
        Create a new version of a group.

        Args:
            group_name: Group to commit
            message: Commit message
            files: Subset of files to include (default: all group members)

        Returns:
            The appended Version

        Raises:
            GroupNotFound: If the group is not tracked
            FileNotTracked: If an included file has no tracking record
            CrossFileInconsistency: If history was saved but the registry was not
        """
        self.repo.ensure_initialized()
        groups = self._load_groups()
        group = self._require(groups, group_name)
        registry = self.tracked_files()

        if files is None:
            identifiers = list(group.members)
        else:
            identifiers = list(dict.fromkeys(identify(Path(f)) for f in files))

        snapshot = {}
        for identifier in identifiers:
            data = self._read_tracked(registry, identifier)
            snapshot[identifier] = self.store.put(data)

        version = Version(commit_message=message, timestamp=datetime.now(), files=snapshot)

        updated = group.with_version(version)
        for identifier in identifiers:
            updated = updated.with_member(identifier)
        groups.put(updated)
        self._save_groups(groups)

        for identifier in identifiers:
            registry.record_commit(identifier, message, version.timestamp)
        try:
            self._save_tracked(registry)
        except SnapError as e:
            self.logger.error(
                f"Version {version.version_id} was written to {self.repo.group_tracker_path} "
                f"but {self.repo.tracker_path} could not be updated: {e}"
            )
            raise CrossFileInconsistency(
                f"Committed {version.version_id} to group {group_name!r} but failed to update "
                f"{self.repo.tracker_path}; commit statistics are stale ({e})"
            ) from e

        self.logger.info(
            f"Committed {len(snapshot)} file(s) to {group_name} as {version.version_id}: {message}"
        )
        return version

    # Restore

    def restore(self, path: PathLike, version_id: str) -> Path:
        """
        Write a file's content from ``version_id`` back to its tracked path.

        The group's history and current pointer are left unchanged.
        """
        self.repo.ensure_initialized()
        identifier = identify(Path(path))
        registry = self.tracked_files()
        record = registry.get(identifier)
        if record is None:
            raise FileNotTracked(f"{path} is not tracked")

        _, version = self.find_version(version_id)
        ref = version.ref_for(identifier)
        if ref is None:
            raise FileNotTracked(f"{path} is not part of version {version_id}")

        target = self.repo.absolute(record.current_path)
        mode = target.stat().st_mode & 0o777 if target.exists() else self.repo.config.file_permissions
        atomic_write(target, self.store.get(ref), mode)
        self.logger.info(f"Restored {record.current_path} from version {version_id}")
        return target
