"""
In-place zlib compression of structured files.

Structured files rest compressed on disk. ``decompressed`` brackets a single
read or write and always leaves the file compressed again afterwards.
"""

from __future__ import annotations

import logging
import os
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..errors import CorruptObject, IOFailure

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 6


def _replace_contents(path: Path, data: bytes) -> None:
    """Swap the file's bytes via a sibling temp file, keeping its mode bits."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        mode = os.stat(path).st_mode & 0o777
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise IOFailure(f"Could not rewrite {path}: {e}") from e


def compress_file(path: Path, level: int = DEFAULT_LEVEL) -> None:
    """Compress a plain file in place."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise IOFailure(f"Could not read {path}: {e}") from e
    _replace_contents(path, zlib.compress(raw, level))


def decompress_file(path: Path) -> None:
    """Decompress a compressed file in place."""
    try:
        packed = path.read_bytes()
    except OSError as e:
        raise IOFailure(f"Could not read {path}: {e}") from e
    try:
        raw = zlib.decompress(packed)
    except zlib.error as e:
        raise CorruptObject(f"Could not decompress {path}: {e}") from e
    _replace_contents(path, raw)


@contextmanager
def decompressed(path: Path, level: int = DEFAULT_LEVEL) -> Iterator[Path]:
    """
    Hold a file decompressed for the duration of the block.

    The file is re-compressed on every exit path once decompression has
    succeeded. If decompression itself fails the file is left untouched.
    """
    decompress_file(path)
    try:
        yield path
    finally:
        logger.debug(f"Re-compressing {path}")
        compress_file(path, level)
