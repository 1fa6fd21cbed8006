"""
Group versioning and diff modules.
"""

from .version_control import VersionController
from .diff_engine import FileDiff, DiffEngine

__all__ = ["VersionController", "FileDiff", "DiffEngine"]
