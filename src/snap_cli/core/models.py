"""
Value types persisted by the snap-cli engine.

Records are immutable; updates produce a new record that replaces the old
one at its key in the owning container.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Content digest of a blob in the object store
ObjectRef = str

INITIAL_COMMIT_MESSAGE = "Initial Tracking"


class TrackedFile(BaseModel):
    """Tracking metadata for one file identifier."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    current_path: str
    commit_count: int = 0
    last_commit_message: str = ""
    last_commit_timestamp: Optional[datetime] = None

    def moved_to(self, path: str) -> TrackedFile:
        """Return this record pointing at a new path, stats unchanged."""
        return self.model_copy(update={"current_path": path})

    def committed(self, message: str, timestamp: datetime) -> TrackedFile:
        """Return this record with one more commit counted."""
        return self.model_copy(update={
            "commit_count": self.commit_count + 1,
            "last_commit_message": message,
            "last_commit_timestamp": timestamp,
        })


class Version(BaseModel):
    """A timestamped snapshot of a group's files."""

    model_config = ConfigDict(frozen=True)

    version_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    commit_message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    files: Dict[str, ObjectRef] = Field(default_factory=dict)

    def ref_for(self, identifier: str) -> Optional[ObjectRef]:
        return self.files.get(identifier)


class Group(BaseModel):
    """A named, linearly versioned collection of tracked files."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    group_name: str
    versions: Dict[str, Version]
    version_order: List[str]
    current: str
    members: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_history(self) -> Group:
        if len(set(self.version_order)) != len(self.version_order):
            raise ValueError(f"group {self.group_name!r} has duplicate versions in its order")
        if set(self.versions) != set(self.version_order):
            raise ValueError(f"group {self.group_name!r} versions do not match its order")
        if self.current not in self.versions:
            raise ValueError(f"group {self.group_name!r} current version {self.current!r} is unknown")
        return self

    @classmethod
    def initial(cls, group_id: str, group_name: str) -> Group:
        """Create a group holding only the empty initial version."""
        version = Version(commit_message=INITIAL_COMMIT_MESSAGE)
        return cls(
            group_id=group_id,
            group_name=group_name,
            versions={version.version_id: version},
            version_order=[version.version_id],
            current=version.version_id,
        )

    @property
    def current_version(self) -> Version:
        return self.versions[self.current]

    def history(self) -> List[Version]:
        """Versions oldest to newest."""
        return [self.versions[vid] for vid in self.version_order]

    def with_version(self, version: Version) -> Group:
        """Return this group with ``version`` appended and made current."""
        if version.version_id in self.versions:
            # Version ids are never reused; hitting this is an internal bug.
            raise AssertionError(f"version id {version.version_id} already in group {self.group_name}")
        return Group(
            group_id=self.group_id,
            group_name=self.group_name,
            versions={**self.versions, version.version_id: version},
            version_order=[*self.version_order, version.version_id],
            current=version.version_id,
            members=list(self.members),
        )

    def with_member(self, identifier: str) -> Group:
        """Return this group with ``identifier`` added to its members."""
        if identifier in self.members:
            return self
        return self.model_copy(update={"members": [*self.members, identifier]})
