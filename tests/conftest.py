"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from snap_cli.config import SnapConfig
from snap_cli.core.repository import Repository, init_repository
from snap_cli.version.version_control import VersionController


@pytest.fixture
def config() -> SnapConfig:
    """Default configuration."""
    return SnapConfig()


@pytest.fixture
def repo(tmp_path: Path, config: SnapConfig) -> Repository:
    """An initialized repository rooted at a temp directory."""
    return init_repository(tmp_path, config)


@pytest.fixture
def controller(repo: Repository) -> VersionController:
    """Version controller for the temp repository."""
    return VersionController(repo)


@pytest.fixture
def write_file(tmp_path: Path):
    """Write a text file relative to the working tree and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write
