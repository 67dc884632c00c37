"""Folder browser TUI application.

Textual App that renders the NavigationController's view model and turns
key presses into navigation events. Scan results come back through a
thread worker blocked on the scan channel; navigation requests are issued
from async workers that wait until no scan is pending, so the event loop
never blocks on the filesystem.
"""

from __future__ import annotations

import asyncio
from queue import Empty

import reactivex as rx
from reactivex import operators as ops
from reactivex.scheduler.eventloop import AsyncIOScheduler
from textual import work
from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, ListView, Static
from textual.worker import get_current_worker

from foldersearch.errors import ScanError
from foldersearch.models import ErrorPolicy, ViewModel
from foldersearch.navigation import NavigationController
from foldersearch.tui.messages import PatternSubmitted, ScanCompleted
from foldersearch.tui.providers import FolderSearchCommands
from foldersearch.tui.telemetry import Telemetry, set_telemetry
from foldersearch.tui.widgets import DirectoryItem, DirectoryList, SearchBar

PATTERN_DEBOUNCE_SECONDS = 0.3
RECEIVE_POLL_SECONDS = 0.1


class FolderSearchApp(App[str | None]):
    """Interactive directory browser.

    Exits with the selected absolute path as its result, ``None`` on quit,
    and return code 1 when the very first scan fails (``fatal_error`` then
    holds the ScanError).
    """

    TITLE = "Folder Search"
    COMMANDS = App.COMMANDS | {FolderSearchCommands}

    CSS = """
    #path-title {
        height: 1;
        padding: 0 2;
        text-style: bold;
        color: $accent;
    }

    #error-panel {
        display: none;
        color: $error;
        margin: 1 2;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $primary-background;
        color: $text;
        padding: 0 1;
    }

    .-halted #directory-list {
        display: none;
    }

    .-halted #error-panel {
        display: block;
    }
    """

    BINDINGS = [
        ("right,l", "enter_dir", "Enter dir"),
        ("left,h", "parent_dir", "Parent dir"),
        ("full_stop", "select_current", "Pick here"),
        ("slash", "focus_filter", "Filter"),
        ("ctrl+t", "toggle_case", "Case"),
        ("ctrl+r", "refresh", "Rescan"),
        ("escape", "focus_list", "List"),
        ("q", "quit", "Quit"),
        ("ctrl+c", "quit", "Quit"),
        ("ctrl+p", "command_palette", "Commands"),
    ]

    def __init__(
        self,
        controller: NavigationController,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Wrap an already started controller.

        Args:
            controller: Controller whose first scan has been issued.
            telemetry: OTel tracing facade. Defaults to no-op.
        """
        super().__init__()
        self.controller = controller
        self.telemetry = telemetry if telemetry is not None else Telemetry.noop()
        set_telemetry(self.telemetry)
        self.fatal_error: ScanError | None = None
        self._settled = asyncio.Condition()
        self._rx_subscription = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield SearchBar(self.controller.options.pattern)
        yield Static(self.controller.current_path, id="path-title")
        yield DirectoryList()
        yield Static("", id="error-panel")
        yield Static("Scanning...", id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Start the result receiver and wire the filter pipeline."""
        with self.telemetry.span("tui.mount") as span:
            span.set_attribute("mount.start_path", self.controller.current_path)
            span.set_attribute("mount.policy", self.controller.policy.value)
            self._receive_results()
            self.query_one(DirectoryList).focus()
            self._refresh_chrome(self.controller.view)

            loop = asyncio.get_running_loop()
            scheduler = AsyncIOScheduler(loop)
            search_bar = self.query_one(SearchBar)

            # Debounced typing merged with immediate Enter
            pattern_stream = rx.merge(
                search_bar.input_subject.pipe(
                    ops.debounce(PATTERN_DEBOUNCE_SECONDS, scheduler=scheduler),
                ),
                search_bar.enter_subject,
            ).pipe(ops.distinct_until_changed())
            self._rx_subscription = pattern_stream.subscribe(on_next=self._apply_pattern)
            self.telemetry.log.info(f"app mounted start={self.controller.current_path!r}")

    def on_unmount(self) -> None:
        """Dispose the filter pipeline and make sure the scan worker stops."""
        if self._rx_subscription is not None:
            self._rx_subscription.dispose()
            self._rx_subscription = None
        if not self.controller.phase.is_terminal:
            self.controller.quit()

    # ------------------------------------------------------------------
    # Scan results
    # ------------------------------------------------------------------

    @work(thread=True, group="scan-results")
    def _receive_results(self) -> None:
        """Block on the scan channel off the event loop and post each result."""
        worker = get_current_worker()
        channel = self.controller.channel
        while not worker.is_cancelled:
            try:
                result = channel.receive(timeout=RECEIVE_POLL_SECONDS)
            except Empty:
                continue
            if result is None:
                return
            self.post_message(ScanCompleted(result))

    async def on_scan_completed(self, message: ScanCompleted) -> None:
        """Apply a scan result to the controller and redraw."""
        if self.controller.phase.is_terminal:
            return
        result = message.result
        with self.telemetry.span("tui.scan_completed") as span:
            span.set_attribute("scan.path", result.path)
            span.set_attribute("scan.ok", result.ok)
            first_scan = not self.controller.has_listing
            view = self.controller.handle_result(result)

            if result.ok:
                span.set_attribute("scan.count", len(result.entries))
                self.remove_class("-halted")
                await self.query_one(DirectoryList).show_items(view.items)
                self.telemetry.log.info(
                    f"scan completed path={result.path!r} count={len(result.entries)}"
                )
            elif first_scan:
                span.record_exception(result.error)
                self.telemetry.log.error(f"initial directory scan failed error={result.error}")
                self.fatal_error = result.error
                self.controller.quit()
                self.exit(None, return_code=1)
                return
            else:
                span.record_exception(result.error)
                self.telemetry.log.error(f"directory scan failed error={result.error}")
                self._show_error(view)

            self._refresh_chrome(view)

        async with self._settled:
            self._settled.notify_all()

    def _show_error(self, view: ViewModel) -> None:
        if self.controller.policy is ErrorPolicy.STRICT:
            self.query_one("#error-panel", Static).update(
                f"Error: {view.error_message}\nPress q to quit"
            )
            self.add_class("-halted")
            # Only quit is accepted from here on; keep keys away from the filter bar
            self.query_one(SearchBar).disabled = True
            self.set_focus(None)
        else:
            self.notify(view.error_message or "scan failed", title="Scan failed", severity="error")

    def _refresh_chrome(self, view: ViewModel) -> None:
        """Update the path title and status bar from the view model."""
        self.sub_title = view.title
        self.query_one("#path-title", Static).update(view.title)

        options = self.controller.options
        case = "case-sensitive" if options.case_sensitive else "case-insensitive"
        parts = [f"{len(view.items)} directories"]
        if options.pattern:
            parts.append(f"filter: {options.pattern!r}")
        parts.append(case)
        if view.pending:
            parts.append("Scanning...")
        elif view.error_message:
            parts.append(f"Error: {view.error_message}")
        self.query_one("#status-bar", Static).update(" | ".join(parts))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _halted(self) -> bool:
        """True if the controller refuses input; warns while an error display is up."""
        if self.controller.accepts_navigation:
            return False
        if not self.controller.phase.is_terminal:
            self.notify("Navigation halted by a scan error. Press q to quit.", severity="warning")
        return True

    def _start_navigation(self, move: str, name: str | None = None) -> None:
        if not self._halted():
            self._navigate(move, name)

    @work(group="navigation")
    async def _navigate(self, move: str, name: str | None = None) -> None:
        """Issue one navigation request once the previous scan has settled."""
        origin = self.controller.current_path
        async with self._settled:
            await self._settled.wait_for(
                lambda: not self.controller.pending or self.controller.phase.is_terminal
            )
            if not self.controller.accepts_navigation:
                return
            if move == "enter" and self.controller.current_path != origin:
                # The highlighted name belonged to a listing that is gone
                self.telemetry.log.info(f"dropped stale enter name={name!r} origin={origin!r}")
                return

            with self.telemetry.span("tui.navigate") as span:
                span.set_attribute("nav.move", move)
                if move == "enter":
                    request = self.controller.enter(name)
                elif move == "parent":
                    request = self.controller.parent()
                else:
                    request = self.controller.refresh()
                span.set_attribute("nav.target", request.path)
                self.telemetry.log.info(f"navigate move={move} target={request.path!r}")

        self._refresh_chrome(self.controller.view)

    def action_enter_dir(self) -> None:
        """Scan the highlighted child directory."""
        name = self.query_one(DirectoryList).highlighted_name
        if name is None:
            return
        self._start_navigation("enter", name)

    def action_parent_dir(self) -> None:
        self._start_navigation("parent")

    def action_refresh(self) -> None:
        self._start_navigation("refresh")

    # ------------------------------------------------------------------
    # Selection and quit
    # ------------------------------------------------------------------

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Enter on a row picks that directory and ends the session."""
        item = event.item
        if not isinstance(item, DirectoryItem) or self._halted():
            return
        with self.telemetry.span("tui.select") as span:
            path = self.controller.select(item.dir_name)
            span.set_attribute("select.path", path)
        self.exit(path)

    def action_select_current(self) -> None:
        """Pick the directory being displayed."""
        if self._halted():
            return
        with self.telemetry.span("tui.select") as span:
            path = self.controller.select(None)
            span.set_attribute("select.path", path)
        self.exit(path)

    async def action_quit(self) -> None:
        """Stop the scan worker and leave without a selection."""
        if not self.controller.phase.is_terminal:
            self.controller.quit()
            self.telemetry.log.info("user quit application")
        async with self._settled:
            self._settled.notify_all()
        self.exit(None)

    # ------------------------------------------------------------------
    # Filter
    # ------------------------------------------------------------------

    def _apply_pattern(self, pattern: str) -> None:
        """Swap in options with the new pattern and rescan."""
        options = self.controller.options
        if pattern == options.pattern or not self.controller.accepts_navigation:
            return
        with self.telemetry.span("tui.filter_changed") as span:
            span.set_attribute("filter.pattern", pattern)
            self.controller.set_options(options.with_pattern(pattern))
        self._start_navigation("refresh")

    def on_pattern_submitted(self, event: PatternSubmitted) -> None:
        self.query_one(DirectoryList).focus()

    def action_toggle_case(self) -> None:
        if self._halted():
            return
        options = self.controller.options
        self.controller.set_options(options.with_case_sensitive(not options.case_sensitive))
        self.telemetry.log.info(f"case sensitivity toggled value={not options.case_sensitive}")
        self._start_navigation("refresh")

    def action_focus_filter(self) -> None:
        self.query_one(SearchBar).focus()

    def action_focus_list(self) -> None:
        self.query_one(DirectoryList).focus()

    def action_clear_filter(self) -> None:
        self.query_one(SearchBar).clear_and_reset()
