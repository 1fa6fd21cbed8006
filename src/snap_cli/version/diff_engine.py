"""
Diff engine for comparing historical snapshots of a tracked file.

Provides line-level comparison between two versions of a file, or between
its last committed version and the working tree.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..core.identity import identify
from ..errors import ArgumentMismatch, FileNotTracked, IOFailure
from .version_control import VersionController

WORKING_TREE = "working tree"
NO_COMMITS = "no commits"


class DiffType(Enum):
    """Kinds of edit operations in a diff."""
    ADD = "add"
    REMOVE = "remove"
    CONTEXT = "context"


@dataclass(frozen=True)
class DiffOp:
    """A single line of an edit script."""

    diff_type: DiffType
    line: str
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "diff_type": self.diff_type.value,
            "line": self.line,
            "old_lineno": self.old_lineno,
            "new_lineno": self.new_lineno,
        }


def _decode_lines(data: bytes) -> Optional[List[str]]:
    try:
        return data.decode("utf-8").splitlines(keepends=True)
    except UnicodeDecodeError:
        return None


@dataclass
class FileDiff:
    """
    The difference between two snapshots of one file.

    ``operations()`` can be iterated any number of times; neither side is
    modified.
    """

    file_path: str
    source_label: str
    target_label: str
    source: bytes
    target: bytes
    summary: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        """Calculate summary statistics."""
        ops = list(self.operations())
        self.summary = {
            "total_changes": len([op for op in ops if op.diff_type != DiffType.CONTEXT]),
            "insertions": len([op for op in ops if op.diff_type == DiffType.ADD]),
            "deletions": len([op for op in ops if op.diff_type == DiffType.REMOVE]),
        }

    @property
    def is_binary(self) -> bool:
        return _decode_lines(self.source) is None or _decode_lines(self.target) is None

    @property
    def identical(self) -> bool:
        return self.source == self.target

    def operations(self) -> Iterator[DiffOp]:
        """Yield the edit script turning the source into the target."""
        if self.is_binary:
            if not self.identical:
                yield DiffOp(DiffType.REMOVE, f"binary content ({len(self.source)} bytes)\n", 1, None)
                yield DiffOp(DiffType.ADD, f"binary content ({len(self.target)} bytes)\n", None, 1)
            return

        old_lines = _decode_lines(self.source) or []
        new_lines = _decode_lines(self.target) or []
        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == 'equal':
                for offset, line in enumerate(old_lines[i1:i2]):
                    yield DiffOp(DiffType.CONTEXT, line, i1 + offset + 1, j1 + offset + 1)
                continue
            # 'replace' is a removal followed by an insertion
            if tag in ('delete', 'replace'):
                for i in range(i1, i2):
                    yield DiffOp(DiffType.REMOVE, old_lines[i], i + 1, None)
            if tag in ('insert', 'replace'):
                for j in range(j1, j2):
                    yield DiffOp(DiffType.ADD, new_lines[j], None, j + 1)

    def unified(self, context_lines: int = 3) -> str:
        """
        Generate a unified text diff similar to git diff.

        Args:
            context_lines: Number of context lines to show

        Returns:
            Unified diff as string (empty when the sides are identical)
        """
        if self.is_binary:
            if self.identical:
                return ""
            return f"Binary files {self.source_label} and {self.target_label} differ\n"

        diff_lines = difflib.unified_diff(
            _decode_lines(self.source) or [],
            _decode_lines(self.target) or [],
            fromfile=f"{self.file_path} ({self.source_label})",
            tofile=f"{self.file_path} ({self.target_label})",
            n=context_lines,
        )
        return ''.join(line if line.endswith('\n') else line + '\n' for line in diff_lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file_path": self.file_path,
            "source_version": self.source_label,
            "target_version": self.target_label,
            "operations": [op.to_dict() for op in self.operations() if op.diff_type != DiffType.CONTEXT],
            "summary": self.summary,
        }


class DiffEngine:
    """
    Resolves two sides of a file's history and compares them.
    """

    def __init__(self, controller: VersionController):
        self.controller = controller
        self.repo = controller.repo
        self.store = controller.store

    def diff(self, file_path: Union[str, Path], version_a: str = "", version_b: str = "") -> FileDiff:
        """
        Compare two snapshots of a tracked file.

        With both version ids empty the last committed content is compared
        against the file on disk. With both given, the file's content in
        ``version_a`` is compared against ``version_b``.

        Raises:
            ArgumentMismatch: If exactly one version id is given
            RepoNotFound: If the repository is not initialized
            FileNotTracked: If the file has no tracking record or is absent
                from a requested version
            VersionNotFound: If a version id is unknown
        """
        if bool(version_a) != bool(version_b):
            raise ArgumentMismatch()

        self.repo.ensure_initialized()
        path = Path(file_path)
        identifier = identify(path)
        record = self.controller.tracked_files().get(identifier)
        if record is None:
            raise FileNotTracked(f"{file_path} is not tracked")

        if version_a:
            source = self._content_at(identifier, version_a, record.current_path)
            target = self._content_at(identifier, version_b, record.current_path)
            return FileDiff(record.current_path, version_a, version_b, source, target)

        committed = self.controller.last_committed_ref(identifier)
        if committed is None:
            source_label, source = NO_COMMITS, b""
        else:
            version, ref = committed
            source_label, source = version.version_id, self.store.get(ref)

        on_disk = path if path.is_file() else self.repo.absolute(record.current_path)
        try:
            target = on_disk.read_bytes()
        except OSError as e:
            raise IOFailure(f"Could not read {on_disk}: {e}") from e
        return FileDiff(record.current_path, source_label, WORKING_TREE, source, target)

    def _content_at(self, identifier: str, version_id: str, display_path: str) -> bytes:
        _, version = self.controller.find_version(version_id)
        ref = version.ref_for(identifier)
        if ref is None:
            raise FileNotTracked(f"{display_path} is not part of version {version_id}")
        return self.store.get(ref)
