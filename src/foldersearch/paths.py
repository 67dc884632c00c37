"""Path arithmetic for directory navigation.

Paths are normalized textually (``os.path.normpath``): redundant
separators and ``.``/``..`` segments collapse, but symlinks are never
resolved. Going to the parent of the filesystem root is a no-op.
"""

from __future__ import annotations

import os

from foldersearch.errors import InitError


def child_path(parent: str, name: str) -> str:
    """Return the normalized path of ``name`` inside ``parent``."""
    return os.path.normpath(os.path.join(parent, name))


def parent_path(path: str) -> str:
    """Return ``path`` with its last segment removed; the root maps to itself."""
    normalized = os.path.normpath(path)
    return os.path.dirname(normalized) or os.curdir


def resolve_start_path(path: str | os.PathLike[str] | None = None) -> str:
    """Resolve the directory a session starts in.

    ``None`` means the process working directory. Relative paths are made
    absolute against it.

    Raises:
        InitError: If the working directory cannot be determined.
    """
    try:
        if path is None:
            return os.path.normpath(os.getcwd())
        return os.path.abspath(os.fspath(path))
    except OSError as exc:
        raise InitError(f"failed to get current directory: {exc}") from exc
