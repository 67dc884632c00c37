"""Keyboard-driven folder browser: navigate child directories and pick one."""

__version__ = "0.1.0"

from foldersearch.models import (
    ErrorPolicy,
    NavigationPhase,
    ScanRequest,
    ScanResult,
    SearchOptions,
    ViewModel,
)

__all__ = [
    "ErrorPolicy",
    "NavigationPhase",
    "ScanRequest",
    "ScanResult",
    "SearchOptions",
    "ViewModel",
    "__version__",
]
