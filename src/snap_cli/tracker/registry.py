"""
Durable registries: the file tracker and the group tracker.

Each registry is one structured file in the control directory holding a JSON
mapping, compressed at rest. Registries are loaded, changed in memory by
replacing records at their keys, and saved back in full.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..config import SnapConfig
from ..core.identity import identify
from ..core.models import Group, TrackedFile
from ..core.object_store import ObjectStore
from ..errors import ParseFailure
from .scanner import EntryKind, walk

logger = logging.getLogger(__name__)

R = TypeVar("R", TrackedFile, Group)


class _Registry(Generic[R]):
    """Key-indexed container of immutable records."""

    _adapter: TypeAdapter

    def __init__(self, records: Optional[Dict[str, R]] = None):
        self._records: Dict[str, R] = dict(records or {})

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def get(self, key: str) -> Optional[R]:
        return self._records.get(key)

    def items(self) -> Iterable[Tuple[str, R]]:
        return self._records.items()

    def values(self) -> Iterable[R]:
        return self._records.values()

    def replace(self, key: str, record: R) -> None:
        self._records[key] = record

    def to_json(self) -> bytes:
        data = self._adapter.dump_python(self._records, mode="json")
        return json.dumps(data, indent=2, sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes, source: str = "<memory>"):
        try:
            return cls(cls._adapter.validate_json(raw))
        except ValidationError as e:
            raise ParseFailure(f"Malformed registry {source}: {e}") from e

    @classmethod
    def load(cls, store: ObjectStore, path: Path):
        """Load a registry file; an absent file is an empty registry."""
        if not path.exists():
            logger.debug(f"{path} does not exist, starting empty")
            return cls()
        return cls.from_json(store.read_file(path), source=str(path))

    def save(self, store: ObjectStore, path: Path) -> None:
        store.write_file(path, self.to_json())


class TrackerRegistry(_Registry[TrackedFile]):
    """Mapping of file identifier to tracking metadata."""

    _adapter = TypeAdapter(Dict[str, TrackedFile])

    def upsert(self, identifier: str, path: str) -> TrackedFile:
        """Point ``identifier`` at ``path``, creating a fresh record if needed."""
        existing = self.get(identifier)
        record = existing.moved_to(path) if existing else TrackedFile(identifier=identifier, current_path=path)
        self.replace(identifier, record)
        return record

    def record_commit(self, identifier: str, message: str, timestamp: datetime) -> TrackedFile:
        record = self._records[identifier].committed(message, timestamp)
        self.replace(identifier, record)
        return record


class GroupTracker(_Registry[Group]):
    """Mapping of group id to group history."""

    _adapter = TypeAdapter(Dict[str, Group])

    def put(self, group: Group) -> None:
        self.replace(group.group_id, group)

    def by_name(self, group_name: str) -> Optional[Group]:
        for group in self.values():
            if group.group_name == group_name:
                return group
        return None

    def known_identifiers(self) -> set:
        """Every file identifier that is a group member or appears in any version."""
        identifiers = set()
        for group in self.values():
            identifiers.update(group.members)
            for version in group.versions.values():
                identifiers.update(version.files)
        return identifiers


def scan(
    root: Path,
    known_identifiers: Iterable[str],
    config: SnapConfig,
    relative_to: Optional[Path] = None,
) -> TrackerRegistry:
    """
    Rebuild a tracker registry from the files present under ``root``.

    Files whose identifier is not in ``known_identifiers`` are ignored.
    Unreadable directories are logged and skipped.

    Args:
        root: Directory to walk
        known_identifiers: Identifiers worth recording
        config: Supplies the excluded directory names
        relative_to: Record paths relative to this directory when given

    Returns:
        Registry with one fresh record per matching file
    """
    known = set(known_identifiers)
    registry = TrackerRegistry()
    logger.info(f"Scanning files in {root} ...")

    for entry in walk(root, config.scan_exclusions):
        if entry.kind is EntryKind.DENIED:
            logger.warning(f"Permission denied: {entry.path}")
            continue
        if entry.kind is EntryKind.SKIPPED:
            logger.debug(f"Skipping excluded directory {entry.path}")
            continue

        file_id = identify(entry.path.name)
        if file_id in known:
            recorded = entry.path.relative_to(relative_to).as_posix() if relative_to else entry.path.as_posix()
            registry.upsert(file_id, recorded)

    logger.info(f"Scan found {len(registry)} tracked files")
    return registry
