"""
Repository layout and initialization.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config import SnapConfig
from ..errors import IOFailure, RepoAlreadyInit, RepoNotFound
from .object_store import ObjectStore

logger = logging.getLogger(__name__)

EMPTY_MAPPING = b"{}"


@dataclass
class Repository:
    """Paths of one working tree and its control directory."""

    root: Path
    config: SnapConfig = field(default_factory=SnapConfig)

    def __post_init__(self):
        self.root = Path(self.root).resolve()

    @property
    def control_path(self) -> Path:
        return self.root / self.config.control_dir

    @property
    def tracker_path(self) -> Path:
        return self.control_path / self.config.tracker_file

    @property
    def group_tracker_path(self) -> Path:
        return self.control_path / self.config.group_tracker_file

    @property
    def object_path(self) -> Path:
        return self.control_path / self.config.object_dir

    def is_initialized(self) -> bool:
        return self.control_path.is_dir()

    def ensure_initialized(self) -> None:
        if not self.is_initialized():
            raise RepoNotFound(f"No {self.config.control_dir} directory in {self.root}")

    def object_store(self) -> ObjectStore:
        return ObjectStore(self.control_path, self.config)

    def relative(self, path: Path) -> str:
        """Path as recorded in the tracker: relative to the root when inside it."""
        resolved = Path(path).resolve()
        try:
            return resolved.relative_to(self.root).as_posix()
        except ValueError:
            return resolved.as_posix()

    def absolute(self, recorded: str) -> Path:
        path = Path(recorded)
        return path if path.is_absolute() else self.root / path


def init_repository(root: Path, config: Optional[SnapConfig] = None) -> Repository:
    """
    Create the control directory with an empty tracker and group tracker.

    Raises:
        RepoAlreadyInit: If the control directory already exists
        IOFailure: If the directory or files cannot be created
    """
    repo = Repository(root, config or SnapConfig())
    if repo.is_initialized():
        raise RepoAlreadyInit(f"{repo.control_path} already exists")

    try:
        repo.control_path.mkdir(parents=True)
        repo.object_path.mkdir()
    except OSError as e:
        raise IOFailure(f"Could not create {repo.control_path}: {e}") from e

    store = repo.object_store()
    store.write_file(repo.tracker_path, EMPTY_MAPPING)
    store.write_file(repo.group_tracker_path, EMPTY_MAPPING)

    logger.info(f"Initialized empty repository in {repo.control_path}")
    return repo
