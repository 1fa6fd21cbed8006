"""
Configuration management for snap-cli.

Handles loading and managing configuration from files, environment variables,
and command-line options. The resulting ``SnapConfig`` value is passed into
the store, scanner and controllers explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_DIRS = frozenset({".git", ".snap"})


@dataclass(frozen=True)
class SnapConfig:
    """Main configuration for snap-cli."""

    # Repository layout
    control_dir: str = ".snap"
    object_dir: str = "_object"
    tracker_file: str = "_tracker.snap"
    group_tracker_file: str = "_group_tracker.snap"

    # Directories never descended into while scanning
    excluded_dirs: FrozenSet[str] = DEFAULT_EXCLUDED_DIRS

    # Storage
    file_permissions: int = 0o644
    compression_level: int = 6

    # Presentation
    diff_context_lines: int = 3
    log_level: str = "WARNING"

    def with_control_dir(self, control_dir: str) -> SnapConfig:
        """Return a copy using another control directory, which is always excluded."""
        return replace(
            self,
            control_dir=control_dir,
            excluded_dirs=frozenset(self.excluded_dirs | {control_dir}),
        )

    @property
    def scan_exclusions(self) -> FrozenSet[str]:
        """Excluded directory names, always including the control directory."""
        return frozenset(self.excluded_dirs | {self.control_dir})


class ConfigManager:
    """Manages snap-cli configuration from multiple sources."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_dir = Path.home() / '.snap-cli'
        self.config_file = config_file or self.config_dir / 'config.yaml'
        self._config: Optional[SnapConfig] = None

    def load_config(self) -> SnapConfig:
        """Load configuration from all sources."""
        if self._config:
            return self._config

        # Start with defaults
        config = SnapConfig()

        # Load from file if it exists
        if self.config_file.exists():
            config = self._merge_configs(config, self._load_from_file())

        # Override with environment variables
        config = self._merge_configs(config, self._load_from_env())

        self._config = config
        return config

    def _load_from_file(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not load config file {self.config_file}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file}: expected a mapping")
            return {}
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        control_dir = os.getenv('SNAP_CLI_CONTROL_DIR')
        if control_dir:
            env_config['control_dir'] = control_dir

        excluded = os.getenv('SNAP_CLI_EXCLUDED_DIRS')
        if excluded:
            env_config['excluded_dirs'] = [d.strip() for d in excluded.split(',') if d.strip()]

        level = os.getenv('SNAP_CLI_COMPRESSION_LEVEL')
        if level:
            try:
                env_config['compression_level'] = int(level)
            except ValueError:
                logger.warning(f"Ignoring non-integer SNAP_CLI_COMPRESSION_LEVEL={level!r}")

        context = os.getenv('SNAP_CLI_DIFF_CONTEXT')
        if context:
            try:
                env_config['diff_context_lines'] = int(context)
            except ValueError:
                logger.warning(f"Ignoring non-integer SNAP_CLI_DIFF_CONTEXT={context!r}")

        log_level = os.getenv('SNAP_CLI_LOG_LEVEL')
        if log_level:
            env_config['log_level'] = log_level.upper()

        return env_config

    def _merge_configs(self, base: SnapConfig, override: Dict[str, Any]) -> SnapConfig:
        """Merge an override dictionary into a config value."""
        changes: Dict[str, Any] = {}

        for key in ('object_dir', 'tracker_file', 'group_tracker_file', 'log_level'):
            if key in override:
                changes[key] = str(override[key])

        for key in ('compression_level', 'diff_context_lines'):
            if key in override:
                changes[key] = int(override[key])

        if 'file_permissions' in override:
            perms = override['file_permissions']
            changes['file_permissions'] = int(perms, 8) if isinstance(perms, str) else int(perms)

        if 'excluded_dirs' in override:
            changes['excluded_dirs'] = frozenset(override['excluded_dirs'])

        merged = replace(base, **changes)
        control_dir = str(override.get('control_dir', merged.control_dir))
        return merged.with_control_dir(control_dir)

    def save_config(self, config: SnapConfig) -> None:
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {
            'control_dir': config.control_dir,
            'object_dir': config.object_dir,
            'tracker_file': config.tracker_file,
            'group_tracker_file': config.group_tracker_file,
            'excluded_dirs': sorted(config.excluded_dirs),
            'file_permissions': oct(config.file_permissions),
            'compression_level': config.compression_level,
            'diff_context_lines': config.diff_context_lines,
            'log_level': config.log_level,
        }

        with open(self.config_file, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)
        self._config = config

    def create_default_config(self) -> Path:
        """Create a default configuration file."""
        self.save_config(SnapConfig())
        return self.config_file

    def get_config_info(self) -> Dict[str, Any]:
        """Get information about current configuration."""
        config = self.load_config()

        return {
            'config_file': str(self.config_file),
            'config_exists': self.config_file.exists(),
            'control_dir': config.control_dir,
            'excluded_dirs': sorted(config.excluded_dirs),
            'compression_level': config.compression_level,
            'log_level': config.log_level,
        }


# Global config manager instance
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """Get the global config manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def load_config() -> SnapConfig:
    """Load the current configuration."""
    return get_config_manager().load_config()
