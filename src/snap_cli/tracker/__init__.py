"""
Tracker registries and working-tree scanning.
"""

from .registry import TrackerRegistry, GroupTracker, scan
from .scanner import walk, WalkEntry, EntryKind

__all__ = ["TrackerRegistry", "GroupTracker", "scan", "walk", "WalkEntry", "EntryKind"]
