"""
Content-addressed object store.

Blobs live under the object directory named by the SHA-256 of their content
and are zlib-compressed at rest. Structured files (tracker registry, group
history) go through the same atomic-write primitive and are compressed in
place after every write.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import zlib
from pathlib import Path

from ..config import SnapConfig
from ..errors import CorruptObject, IOFailure, ObjectNotFound
from .compressor import compress_file, decompressed
from .models import ObjectRef

logger = logging.getLogger(__name__)

_REF_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def atomic_write(path: Path, data: bytes, permissions: int = 0o644) -> None:
    """
    Write ``data`` to ``path`` so readers see either the old or new file.

    The content goes to a sibling temp file first; the rename is the commit
    point.
    """
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, permissions)
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise IOFailure(f"Atomic write of {path} failed: {e}") from e


class ObjectStore:
    """
    Blob and structured-file persistence for one repository.

    Identical content is stored once; ``put`` on known content is a no-op
    that returns the existing reference.
    """

    def __init__(self, control_path: Path, config: SnapConfig):
        self.control_path = control_path
        self.object_path = control_path / config.object_dir
        self.config = config

    @staticmethod
    def digest(data: bytes) -> ObjectRef:
        return hashlib.sha256(data).hexdigest()

    def _blob_path(self, ref: ObjectRef) -> Path:
        if not _REF_PATTERN.match(ref):
            raise ObjectNotFound(f"Malformed object reference: {ref!r}")
        return self.object_path / ref

    def has(self, ref: ObjectRef) -> bool:
        try:
            return self._blob_path(ref).is_file()
        except ObjectNotFound:
            return False

    def put(self, data: bytes) -> ObjectRef:
        """Store content and return its reference."""
        ref = self.digest(data)
        blob_path = self._blob_path(ref)
        if blob_path.exists():
            logger.debug(f"Object {ref[:12]} already stored")
            return ref

        self.object_path.mkdir(parents=True, exist_ok=True)
        atomic_write(
            blob_path,
            zlib.compress(data, self.config.compression_level),
            self.config.file_permissions,
        )
        logger.debug(f"Stored object {ref[:12]} ({len(data)} bytes)")
        return ref

    def get(self, ref: ObjectRef) -> bytes:
        """Return the exact bytes stored under ``ref``."""
        blob_path = self._blob_path(ref)
        try:
            packed = blob_path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFound(f"Object {ref} not found") from None
        except OSError as e:
            raise IOFailure(f"Could not read object {ref}: {e}") from e

        try:
            data = zlib.decompress(packed)
        except zlib.error as e:
            raise CorruptObject(f"Object {ref} is not valid compressed data: {e}") from e

        if self.digest(data) != ref:
            raise CorruptObject(f"Object {ref} failed digest verification")
        return data

    def write_file(self, path: Path, data: bytes) -> None:
        """Atomically replace a structured file, then compress it in place."""
        atomic_write(path, data, self.config.file_permissions)
        compress_file(path, self.config.compression_level)

    def read_file(self, path: Path) -> bytes:
        """Read a structured file that rests compressed."""
        with decompressed(path, self.config.compression_level) as plain:
            try:
                return plain.read_bytes()
            except OSError as e:
                raise IOFailure(f"Could not read {plain}: {e}") from e
