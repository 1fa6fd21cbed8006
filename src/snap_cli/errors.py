"""
Error kinds surfaced by the snap-cli engine.

Every public operation fails with one of these classes so callers can
distinguish failures by kind rather than by message.
"""

from __future__ import annotations


class SnapError(Exception):
    """Base class for all snap-cli errors."""

    default_message = "snap-cli error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


# Precondition errors

class RepoNotFound(SnapError):
    default_message = "Not a snap repository (or any parent up to the working directory)"


class RepoAlreadyInit(SnapError):
    default_message = "Repository already initialized"


class GroupAlreadyTracked(SnapError):
    default_message = "Group already tracked"


class ArgumentMismatch(SnapError):
    default_message = "argument number mismatch"


# Lookup errors

class FileNotTracked(SnapError):
    default_message = "File is not tracked"


class GroupNotFound(SnapError):
    default_message = "Group not found"


class VersionNotFound(SnapError):
    default_message = "Version not found"


class ObjectNotFound(SnapError):
    default_message = "Object not found"


# Data errors

class ParseFailure(SnapError):
    default_message = "Could not parse structured file"


class CorruptObject(SnapError):
    default_message = "Corrupt object"


# I/O errors

class IOFailure(SnapError):
    default_message = "I/O failure"


class CrossFileInconsistency(IOFailure):
    """History was persisted but the tracker registry was not."""

    default_message = "Group history and tracker registry are out of sync"
