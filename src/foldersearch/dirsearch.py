"""Directory listing and name filtering for one directory level.

``list_directories`` reads the immediate children of a directory and keeps
the subdirectories whose names pass the filter. It never raises on a read
failure: the error comes back inside the ``ScanResult``.
"""

from __future__ import annotations

import logging
import os

from rich.table import Table

from foldersearch.models import ScanResult, SearchOptions

logger = logging.getLogger(__name__)

# Names with this prefix are skipped regardless of options (.git, .github, ...)
GIT_PREFIX = ".git"


def matches(name: str, options: SearchOptions) -> bool:
    """Return True if a directory name survives the ignore list and pattern.

    The ignore list is matched on the exact name. An empty pattern keeps
    every name; otherwise the pattern must be a substring, case-folded on
    both sides unless ``options.case_sensitive``.
    """
    if name.startswith(GIT_PREFIX):
        return False
    if name in options.ignore_names:
        return False
    if not options.pattern:
        return True
    if options.case_sensitive:
        return options.pattern in name
    return options.pattern.casefold() in name.casefold()


def list_directories(path: str | os.PathLike[str], options: SearchOptions) -> ScanResult:
    """List the immediate child directories of ``path`` that pass ``options``.

    Symlinks are not followed, so a link to a directory is not listed.
    Entries keep the order the OS enumerates them in.

    Args:
        path: Directory to read.
        options: Name filter for this scan.

    Returns:
        ScanResult with the surviving names, or with ``error`` set and no
        entries when the directory cannot be read.
    """
    path_str = os.fspath(path)
    found: list[str] = []
    try:
        with os.scandir(path_str) as entries:
            for entry in entries:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                if is_dir and matches(entry.name, options):
                    found.append(entry.name)
    except OSError as exc:
        logger.warning("Cannot scan %s: %s", path_str, exc)
        return ScanResult.failure(path_str, exc)

    logger.debug("Scanned %s: %d matching directories", path_str, len(found))
    return ScanResult(path=path_str, entries=tuple(found))


def format_results(result: ScanResult) -> Table:
    """Render a scan result as a numbered Rich table for the ``list`` command."""
    table = Table(title=f"Directories in {result.path}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Directory", style="bold")
    for index, name in enumerate(result.entries, start=1):
        table.add_row(str(index), name)
    table.caption = f"Found {len(result.entries)} directories"
    return table
