"""
Storage primitives: identifiers, compression, object store and repository layout.
"""

from .identity import identify, hasher
from .models import TrackedFile, Version, Group, ObjectRef
from .object_store import ObjectStore, atomic_write
from .repository import Repository, init_repository

__all__ = [
    "identify",
    "hasher",
    "TrackedFile",
    "Version",
    "Group",
    "ObjectRef",
    "ObjectStore",
    "atomic_write",
    "Repository",
    "init_repository",
]
