"""
Stable identifiers for tracked files and groups.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union


def hasher(name: str) -> str:
    """Return the hex SHA-256 digest of a name."""
    return hashlib.sha256(name.encode("utf-8")).hexdigest()


def identify(name: Union[str, Path]) -> str:
    """
    Derive the identifier for a file.

    Only the base name takes part, so ``a/notes.txt`` and ``b/notes.txt``
    map to the same identifier and share one tracking record.

    Args:
        name: File path or base name

    Returns:
        Hex digest used as the tracking key
    """
    normalized = str(name).replace("\\", "/").rstrip("/")
    return hasher(normalized.rsplit("/", 1)[-1])
