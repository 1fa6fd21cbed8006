"""Tests for configuration loading."""

from pathlib import Path

import pytest

from snap_cli.config import ConfigManager, SnapConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "SNAP_CLI_CONTROL_DIR",
        "SNAP_CLI_EXCLUDED_DIRS",
        "SNAP_CLI_COMPRESSION_LEVEL",
        "SNAP_CLI_DIFF_CONTEXT",
        "SNAP_CLI_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file(tmp_path: Path):
    config = ConfigManager(tmp_path / "config.yaml").load_config()

    assert config == SnapConfig()
    assert config.excluded_dirs == {".git", ".snap"}
    assert config.file_permissions == 0o644


def test_file_values_are_applied(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "compression_level: 9\n"
        "diff_context_lines: 5\n"
        "file_permissions: '0o600'\n"
        "excluded_dirs: [.git, .snap, node_modules]\n"
    )

    config = ConfigManager(path).load_config()

    assert config.compression_level == 9
    assert config.diff_context_lines == 5
    assert config.file_permissions == 0o600
    assert "node_modules" in config.excluded_dirs


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "config.yaml"
    path.write_text("compression_level: 9\n")
    monkeypatch.setenv("SNAP_CLI_COMPRESSION_LEVEL", "1")
    monkeypatch.setenv("SNAP_CLI_LOG_LEVEL", "debug")

    config = ConfigManager(path).load_config()

    assert config.compression_level == 1
    assert config.log_level == "DEBUG"


def test_custom_control_dir_is_always_excluded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SNAP_CLI_CONTROL_DIR", ".vault")

    config = ConfigManager(tmp_path / "config.yaml").load_config()

    assert config.control_dir == ".vault"
    assert ".vault" in config.excluded_dirs


def test_excluded_dirs_override_keeps_control_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SNAP_CLI_EXCLUDED_DIRS", "node_modules")

    config = ConfigManager(tmp_path / "config.yaml").load_config()

    assert config.excluded_dirs == {"node_modules", ".snap"}


def test_file_excluded_dirs_keep_custom_control_dir(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("control_dir: .vault\nexcluded_dirs: [build]\n")

    config = ConfigManager(path).load_config()

    assert config.excluded_dirs == {"build", ".vault"}


def test_invalid_env_number_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SNAP_CLI_DIFF_CONTEXT", "lots")

    config = ConfigManager(tmp_path / "config.yaml").load_config()

    assert config.diff_context_lines == 3


def test_malformed_file_falls_back_to_defaults(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("key: [unclosed\n")

    assert ConfigManager(path).load_config() == SnapConfig()


def test_save_then_load(tmp_path: Path):
    path = tmp_path / "nested" / "config.yaml"
    original = SnapConfig(compression_level=2, diff_context_lines=7)
    ConfigManager(path).save_config(original)

    assert ConfigManager(path).load_config() == original
