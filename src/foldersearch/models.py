"""Data models and enums shared by the scan worker, controller and UI."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from foldersearch.errors import ScanError

DEFAULT_IGNORE_NAMES: frozenset[str] = frozenset({"node_modules"})


class NavigationPhase(str, Enum):
    """Where the navigation state machine currently is."""

    NEW = "new"
    IDLE = "idle"
    AWAITING_SCAN = "awaiting_scan"
    ERROR_DISPLAYED = "error_displayed"
    SELECTED = "selected"
    QUIT = "quit"

    @property
    def is_terminal(self) -> bool:
        return self in (NavigationPhase.SELECTED, NavigationPhase.QUIT)


class ErrorPolicy(str, Enum):
    """What a failed scan does to the session.

    LENIENT keeps the last good listing and lets the user keep navigating.
    STRICT switches to an error display that only accepts quit.
    """

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(frozen=True)
class SearchOptions:
    """Name filter applied to every scan. Replaced wholesale, never mutated."""

    pattern: str = ""
    case_sensitive: bool = False
    ignore_names: frozenset[str] = field(default_factory=lambda: DEFAULT_IGNORE_NAMES)

    def __post_init__(self) -> None:
        if not isinstance(self.ignore_names, frozenset):
            object.__setattr__(self, "ignore_names", frozenset(self.ignore_names))

    def with_pattern(self, pattern: str) -> SearchOptions:
        return replace(self, pattern=pattern)

    def with_case_sensitive(self, case_sensitive: bool) -> SearchOptions:
        return replace(self, case_sensitive=case_sensitive)


@dataclass(frozen=True)
class ScanRequest:
    """One "list this path" job, carrying its options snapshot by value."""

    path: str
    options: SearchOptions = field(default_factory=SearchOptions)


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan.

    ``entries`` keeps OS enumeration order and is empty whenever ``error``
    is set.
    """

    path: str
    entries: tuple[str, ...] = ()
    error: ScanError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, path: str, cause: OSError) -> ScanResult:
        return cls(path=path, entries=(), error=ScanError(path, cause))


@dataclass(frozen=True)
class ViewModel:
    """Read-only snapshot handed to the renderer after every accepted event."""

    title: str
    items: tuple[str, ...] = ()
    error_message: str | None = None
    pending: bool = False
