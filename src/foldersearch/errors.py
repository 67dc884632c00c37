"""Exception hierarchy for the folder browser.

``ScanError`` travels as a value inside ``ScanResult``; the others are
raised and propagate to the CLI.
"""

from __future__ import annotations


class FolderSearchError(Exception):
    """Base class for all foldersearch errors."""


class InitError(FolderSearchError):
    """Raised when the initial directory cannot be resolved or the worker cannot start."""


class ScanError(FolderSearchError):
    """A directory could not be enumerated (missing, permission denied, not a directory)."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        reason = cause.strerror or str(cause)
        super().__init__(f"cannot read {path}: {reason}")


class ChannelClosedError(FolderSearchError):
    """Raised on a send after shutdown, or on a second shutdown."""


class NavigationError(FolderSearchError):
    """Raised when a navigation event arrives in a phase that does not accept it."""
