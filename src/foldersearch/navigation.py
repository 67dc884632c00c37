"""Navigation state machine: which directory is shown and what happens next.

The controller is owned by the interactive thread. It turns input events
into scan requests, applies scan results, and exposes a read-only
``ViewModel``. ``current_path`` only ever moves to a path whose scan
succeeded.
"""

from __future__ import annotations

import logging
import os

from foldersearch.errors import NavigationError
from foldersearch.models import (
    ErrorPolicy,
    NavigationPhase,
    ScanRequest,
    ScanResult,
    SearchOptions,
    ViewModel,
)
from foldersearch.paths import child_path, parent_path, resolve_start_path
from foldersearch.worker import ScanChannel

logger = logging.getLogger(__name__)


class NavigationController:
    """Single authority over the displayed directory.

    Usage:
        controller = NavigationController(channel, SearchOptions())
        controller.start("/home/me")
        view = controller.handle_result(channel.receive())
        controller.enter("projects")
    """

    def __init__(
        self,
        channel: ScanChannel,
        options: SearchOptions | None = None,
        policy: ErrorPolicy = ErrorPolicy.LENIENT,
    ) -> None:
        self._channel = channel
        self._options = options if options is not None else SearchOptions()
        self.policy = policy
        self._phase = NavigationPhase.NEW
        self._current_path = ""
        self._items: tuple[str, ...] = ()
        self._error_message: str | None = None
        self._outstanding = 0
        self._has_listing = False
        self._selection: str | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def channel(self) -> ScanChannel:
        return self._channel

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def phase(self) -> NavigationPhase:
        return self._phase

    @property
    def pending(self) -> bool:
        """True from sending a request until its result is handled."""
        return self._outstanding > 0

    @property
    def has_listing(self) -> bool:
        """True once any scan has succeeded."""
        return self._has_listing

    @property
    def selection(self) -> str | None:
        return self._selection

    @property
    def options(self) -> SearchOptions:
        return self._options

    @property
    def accepts_navigation(self) -> bool:
        if self._phase in (NavigationPhase.NEW, NavigationPhase.SELECTED, NavigationPhase.QUIT):
            return False
        if self._phase is NavigationPhase.ERROR_DISPLAYED:
            return self.policy is ErrorPolicy.LENIENT
        return True

    @property
    def view(self) -> ViewModel:
        return ViewModel(
            title=self._current_path,
            items=self._items,
            error_message=self._error_message,
            pending=self.pending,
        )

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------

    def start(self, initial_path: str | os.PathLike[str] | None = None) -> ScanRequest:
        """Set the starting directory and issue the first scan.

        Raises:
            InitError: If the working directory cannot be determined.
            NavigationError: If the controller was already started.
        """
        if self._phase is not NavigationPhase.NEW:
            raise NavigationError("navigation already started")
        self._current_path = resolve_start_path(initial_path)
        self._phase = NavigationPhase.IDLE
        logger.info("starting navigation at %s", self._current_path)
        return self._request(self._current_path)

    def enter(self, name: str) -> ScanRequest:
        """Scan the child directory ``name`` of the current path."""
        self._ensure_navigable()
        target = child_path(self._current_path, name)
        logger.debug("navigating into directory %s", target)
        return self._request(target)

    def parent(self) -> ScanRequest:
        """Scan the parent of the current path (the root rescans itself)."""
        self._ensure_navigable()
        target = parent_path(self._current_path)
        logger.debug("navigating to parent directory %s", target)
        return self._request(target)

    def refresh(self) -> ScanRequest:
        """Rescan the current path with the current options."""
        self._ensure_navigable()
        return self._request(self._current_path)

    def set_options(self, options: SearchOptions) -> None:
        """Replace the search options; the next request uses them."""
        self._options = options

    def select(self, name: str | None = None) -> str:
        """End navigation with a choice and shut the worker down.

        Args:
            name: Child directory picked by the user, or ``None`` to pick
                the current directory itself.

        Returns:
            The absolute path of the selection.

        Raises:
            NavigationError: Before start, after quit or select, or while a
                STRICT error display is up.
        """
        if not self.accepts_navigation:
            raise NavigationError(f"cannot select in phase {self._phase.value}")
        chosen = child_path(self._current_path, name) if name else self._current_path
        self._channel.shutdown()
        self._phase = NavigationPhase.SELECTED
        self._selection = chosen
        logger.info("selected %s", chosen)
        return chosen

    def quit(self) -> None:
        """End navigation without a selection and shut the worker down.

        Raises:
            ChannelClosedError: If shutdown was already signalled.
        """
        self._channel.shutdown()
        self._phase = NavigationPhase.QUIT
        logger.info("user quit navigation")

    # ------------------------------------------------------------------
    # Scan responses
    # ------------------------------------------------------------------

    def handle_result(self, result: ScanResult) -> ViewModel:
        """Apply a scan result and return the refreshed view."""
        if self._outstanding > 0:
            self._outstanding -= 1
        if self._phase.is_terminal:
            return self.view

        if result.ok:
            self._current_path = result.path
            self._items = result.entries
            self._error_message = None
            self._has_listing = True
            self._phase = NavigationPhase.AWAITING_SCAN if self.pending else NavigationPhase.IDLE
            logger.debug("directory scan completed dir=%s count=%d", result.path, len(result.entries))
        else:
            self._error_message = str(result.error)
            self._phase = NavigationPhase.ERROR_DISPLAYED
            logger.error("directory scan failed dir=%s error=%s", result.path, result.error)
        return self.view

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_navigable(self) -> None:
        if not self.accepts_navigation:
            raise NavigationError(f"navigation not accepted in phase {self._phase.value}")

    def _request(self, path: str) -> ScanRequest:
        request = ScanRequest(path=path, options=self._options)
        self._channel.send(request)
        self._outstanding += 1
        self._phase = NavigationPhase.AWAITING_SCAN
        return request
