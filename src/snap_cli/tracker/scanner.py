"""
Directory walking for tracked-file discovery.

``walk`` is a generator over a working tree. Excluded directories are
reported as ``SKIPPED`` entries and never descended into; directories that
cannot be opened for lack of permission are reported as ``DENIED``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Iterator

from ..errors import IOFailure

logger = logging.getLogger(__name__)


class EntryKind(Enum):
    """What the walker found at a path."""
    FILE = "file"
    SKIPPED = "skipped"
    DENIED = "denied"


@dataclass(frozen=True)
class WalkEntry:
    path: Path
    kind: EntryKind


def walk(root: Path, excluded_dirs: AbstractSet[str]) -> Iterator[WalkEntry]:
    """
    Yield every regular file under ``root`` in sorted, depth-first order.

    Args:
        root: Directory to walk
        excluded_dirs: Directory base names whose subtrees are skipped

    Raises:
        IOFailure: On traversal errors other than permission denial
    """
    stack = [Path(root)]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except PermissionError:
            yield WalkEntry(directory, EntryKind.DENIED)
            continue
        except OSError as e:
            logger.error(f"Error accessing path {directory}: {e}")
            raise IOFailure(f"Error accessing path {directory}: {e}") from e

        subdirs = []
        for entry in entries:
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dirs:
                    yield WalkEntry(path, EntryKind.SKIPPED)
                else:
                    subdirs.append(path)
            elif entry.is_file(follow_symlinks=False):
                yield WalkEntry(path, EntryKind.FILE)

        # Reverse so the stack pops subdirectories in name order
        stack.extend(reversed(subdirs))
