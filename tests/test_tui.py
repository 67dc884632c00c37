"""Headless tests for the folder browser TUI.

Drives FolderSearchApp through Textual's App.run_test / Pilot against a
real scan worker and a temporary directory tree.

asyncio_mode = "auto" in pyproject.toml means async test functions are
automatically discovered and run without explicit @pytest.mark.asyncio.
"""

from __future__ import annotations

import asyncio
import shutil
import time

import pytest

from foldersearch.dirsearch import list_directories
from foldersearch.errors import ScanError
from foldersearch.models import ErrorPolicy, NavigationPhase, SearchOptions
from foldersearch.navigation import NavigationController
from foldersearch.tui.app import FolderSearchApp
from foldersearch.tui.providers import FolderSearchCommands
from foldersearch.tui.telemetry import Telemetry
from foldersearch.tui.widgets import DirectoryList, SearchBar
from foldersearch.tui.widgets.search_bar import PatternHistory
from foldersearch.worker import ScanChannel, ScanWorker


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_app(tmp_tree):
    """Factory for FolderSearchApp wired to a started controller and worker."""
    workers: list[ScanWorker] = []

    def _make(
        start=None,
        policy: ErrorPolicy = ErrorPolicy.LENIENT,
        options: SearchOptions | None = None,
        telemetry: Telemetry | None = None,
        search=list_directories,
    ) -> FolderSearchApp:
        channel = ScanChannel()
        worker = ScanWorker(channel, search=search)
        worker.start()
        workers.append(worker)
        controller = NavigationController(channel, options, policy)
        controller.start(start if start is not None else tmp_tree)
        return FolderSearchApp(controller, telemetry=telemetry)

    yield _make

    for worker in workers:
        if not worker.channel.closed:
            worker.channel.shutdown()
        worker.join(2.0)


async def wait_for(pilot, predicate, timeout: float = 3.0) -> None:
    """Pause the pilot until ``predicate()`` holds or fail after ``timeout``."""
    steps = int(timeout / 0.05)
    for _ in range(steps):
        if predicate():
            return
        await pilot.pause(0.05)
    assert predicate(), "condition not met before timeout"


def listing_shown(app: FolderSearchApp):
    """Predicate: the last scan is applied and its rows are mounted and highlighted."""

    def _shown() -> bool:
        dir_list = app.query_one(DirectoryList)
        return (
            not app.controller.pending
            and app.controller.has_listing
            and dir_list.names == app.controller.view.items
            and dir_list.highlighted_name is not None
        )

    return _shown


async def highlight(pilot, app: FolderSearchApp, name: str) -> None:
    dir_list = app.query_one(DirectoryList)
    dir_list.index = dir_list.names.index(name)
    await pilot.pause()


# ---------------------------------------------------------------------------
# Mount and initial listing
# ---------------------------------------------------------------------------


async def test_app_mounts_widgets(make_app):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        assert app.query_one(SearchBar) is not None
        assert app.query_one(DirectoryList) is not None
        assert app.query_one("#status-bar") is not None


async def test_app_includes_commands_provider(make_app):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        assert FolderSearchCommands in app.COMMANDS


async def test_initial_listing_rendered(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, lambda: len(app.query_one(DirectoryList).names) == 3)
        assert set(app.query_one(DirectoryList).names) == {"foo", "bar", "node_modules_old"}
        assert app.sub_title == str(tmp_tree)
        assert app.controller.phase is NavigationPhase.IDLE


async def test_initial_pattern_in_search_bar(make_app):
    app = make_app(options=SearchOptions(pattern="ba"))
    async with app.run_test(size=(100, 30)) as pilot:
        assert app.query_one(SearchBar).value == "ba"
        await wait_for(pilot, listing_shown(app))
        assert app.query_one(DirectoryList).names == ("bar",)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


async def test_right_enters_and_left_returns(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "foo")

        await pilot.press("right")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree / "foo"))
        await wait_for(pilot, lambda: app.query_one(DirectoryList).names == ("inner",))

        await pilot.press("left")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree))
        await wait_for(pilot, lambda: len(app.query_one(DirectoryList).names) == 3)


async def test_vim_keys_navigate(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "foo")

        await pilot.press("l")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree / "foo"))
        await pilot.press("h")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree))


async def test_refresh_picks_up_new_directory(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        (tmp_tree / "fresh").mkdir()
        await pilot.press("ctrl+r")
        await wait_for(pilot, lambda: "fresh" in app.query_one(DirectoryList).names)


SLOW_SCAN_SECONDS = 0.4


def slow_search(path, options):
    time.sleep(SLOW_SCAN_SECONDS)
    return list_directories(path, options)


def record_traffic(app: FolderSearchApp) -> list[tuple[str, str, int]]:
    """Log ("send" | "handled", path, in_flight) for every request and applied result."""
    controller = app.controller
    channel = controller.channel
    events: list[tuple[str, str, int]] = []
    send = channel.send
    handle_result = controller.handle_result

    def recording_send(request):
        events.append(("send", request.path, channel.in_flight))
        send(request)

    def recording_handle_result(result):
        events.append(("handled", result.path, channel.in_flight))
        return handle_result(result)

    channel.send = recording_send
    controller.handle_result = recording_handle_result
    return events


async def test_second_enter_waits_and_stale_enter_is_dropped(make_app, tmp_tree):
    app = make_app(search=slow_search)
    events = record_traffic(app)
    foo = str(tmp_tree / "foo")
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app), timeout=5.0)
        await highlight(pilot, app, "foo")
        events.clear()

        await pilot.press("right", "right")
        await wait_for(pilot, lambda: len(events) > 0)
        # The second enter is parked until the first scan is applied
        assert events == [("send", foo, 0)]
        assert app.controller.pending is True

        await wait_for(pilot, lambda: app.controller.current_path == foo, timeout=5.0)
        await pilot.pause(SLOW_SCAN_SECONDS + 0.2)

    # The parked enter targeted the old listing, so it never went out
    assert events == [("send", foo, 0), ("handled", foo, 0)]
    assert app.controller.current_path == foo


async def test_queued_parent_moves_run_one_at_a_time(make_app, tmp_tree):
    app = make_app(start=tmp_tree / "foo", search=slow_search)
    events = record_traffic(app)
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app), timeout=5.0)
        events.clear()

        await pilot.press("left", "left")
        await wait_for(
            pilot,
            lambda: app.controller.current_path == str(tmp_tree.parent) and not app.controller.pending,
            timeout=5.0,
        )

    assert [e[:2] for e in events] == [
        ("send", str(tmp_tree)),
        ("handled", str(tmp_tree)),
        ("send", str(tmp_tree.parent)),
        ("handled", str(tmp_tree.parent)),
    ]
    assert all(in_flight == 0 for _, _, in_flight in events)


# ---------------------------------------------------------------------------
# Selection and quit
# ---------------------------------------------------------------------------


async def test_enter_selects_highlighted(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "bar")
        await pilot.press("enter")
    assert app.return_value == str(tmp_tree / "bar")
    assert app.controller.phase is NavigationPhase.SELECTED
    assert app.controller.channel.closed


async def test_full_stop_picks_current_directory(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await pilot.press("full_stop")
    assert app.return_value == str(tmp_tree)


async def test_q_quits_without_selection(make_app):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await pilot.press("q")
    assert app.return_value is None
    assert app.return_code == 0
    assert app.controller.phase is NavigationPhase.QUIT
    assert app.controller.channel.closed


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


async def test_typing_pattern_filters_listing(make_app):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await pilot.press("slash")
        assert app.focused is app.query_one(SearchBar)

        await pilot.press("b", "a", "enter")
        await wait_for(pilot, lambda: app.query_one(DirectoryList).names == ("bar",))
        assert app.controller.options.pattern == "ba"
        assert app.focused is app.query_one(DirectoryList)


async def test_clear_filter_restores_listing(make_app):
    app = make_app(options=SearchOptions(pattern="ba"))
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        app.action_clear_filter()
        await wait_for(pilot, lambda: len(app.query_one(DirectoryList).names) == 3)
        assert app.controller.options.pattern == ""


async def test_toggle_case_sensitivity(make_app):
    app = make_app(options=SearchOptions(pattern="FO"))
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, lambda: app.query_one(DirectoryList).names == ("foo",))
        await pilot.press("ctrl+t")
        assert app.controller.options.case_sensitive is True
        await wait_for(pilot, lambda: app.query_one(DirectoryList).names == () and not app.controller.pending)


# ---------------------------------------------------------------------------
# Scan errors
# ---------------------------------------------------------------------------


async def test_lenient_error_keeps_listing(make_app, tmp_tree):
    app = make_app()
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        before = app.query_one(DirectoryList).names
        await highlight(pilot, app, "bar")
        shutil.rmtree(tmp_tree / "bar")

        await pilot.press("right")
        await wait_for(pilot, lambda: app.controller.view.error_message is not None)
        assert app.controller.current_path == str(tmp_tree)
        assert app.query_one(DirectoryList).names == before
        assert not app.has_class("-halted")

        await pilot.press("left")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree.parent))
        assert app.controller.view.error_message is None


async def test_strict_error_halts_navigation(make_app, tmp_tree):
    app = make_app(policy=ErrorPolicy.STRICT)
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "bar")
        shutil.rmtree(tmp_tree / "bar")

        await pilot.press("right")
        await wait_for(pilot, lambda: app.has_class("-halted"))
        assert app.controller.phase is NavigationPhase.ERROR_DISPLAYED

        await pilot.press("left")
        await pilot.pause(0.2)
        assert app.controller.current_path == str(tmp_tree)
        assert app.controller.pending is False

        await pilot.press("q")
    assert app.return_value is None
    assert app.controller.phase is NavigationPhase.QUIT


async def test_strict_error_refuses_pick_and_case_toggle(make_app, tmp_tree):
    app = make_app(policy=ErrorPolicy.STRICT)
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "bar")
        shutil.rmtree(tmp_tree / "bar")

        await pilot.press("right")
        await wait_for(pilot, lambda: app.has_class("-halted"))

        await pilot.press("full_stop")
        await pilot.pause(0.1)
        assert app.controller.phase is NavigationPhase.ERROR_DISPLAYED
        assert app.controller.selection is None
        assert not app.controller.channel.closed

        app.action_select_current()
        assert app.controller.selection is None

        await pilot.press("ctrl+t")
        await pilot.pause(0.1)
        assert app.controller.options.case_sensitive is False

        await pilot.press("q")
    assert app.return_value is None
    assert app.controller.phase is NavigationPhase.QUIT


async def test_initial_scan_failure_exits_with_code_1(make_app, tmp_tree):
    app = make_app(start=tmp_tree / "missing")
    async with app.run_test(size=(100, 30)):
        # The app exits on its own; plain sleeps avoid touching a closing screen
        for _ in range(60):
            if app.fatal_error is not None:
                break
            await asyncio.sleep(0.05)
    assert app.return_code == 1
    assert isinstance(app.fatal_error, ScanError)
    assert app.controller.phase is NavigationPhase.QUIT


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


async def test_navigation_emits_spans(make_app, tmp_tree):
    telemetry, exporter = Telemetry.for_testing()
    app = make_app(telemetry=telemetry)
    async with app.run_test(size=(100, 30)) as pilot:
        await wait_for(pilot, listing_shown(app))
        await highlight(pilot, app, "foo")
        await pilot.press("right")
        await wait_for(pilot, lambda: app.controller.current_path == str(tmp_tree / "foo"))

    names = {span.name for span in exporter.get_finished_spans()}
    assert {"tui.mount", "tui.scan_completed", "tui.navigate"} <= names

    navigate = [s for s in exporter.get_finished_spans() if s.name == "tui.navigate"][0]
    assert navigate.attributes["nav.move"] == "enter"
    assert navigate.attributes["nav.target"] == str(tmp_tree / "foo")


# ---------------------------------------------------------------------------
# PatternHistory and command palette (pure Python, no Textual context needed)
# ---------------------------------------------------------------------------


class TestPatternHistory:
    def test_empty_history_recalls_nothing(self):
        history = PatternHistory()
        assert history.older() is None
        assert history.newer() is None

    def test_older_walks_back_and_stops_at_first(self):
        history = PatternHistory()
        for pattern in ("src", "docs", "test"):
            history.record(pattern)
        assert history.older() == "test"
        assert history.older() == "docs"
        assert history.older() == "src"
        assert history.older() == "src"

    def test_newer_past_end_clears(self):
        history = PatternHistory()
        history.record("src")
        history.record("docs")
        history.older()
        history.older()
        assert history.newer() == "docs"
        assert history.newer() == ""
        assert history.newer() is None

    def test_repeats_and_empty_not_recorded(self):
        history = PatternHistory()
        history.record("src")
        history.record("src")
        history.record("")
        assert history.entries == ["src"]


class TestCommandPalette:
    def test_every_command_has_an_action(self):
        for action in FolderSearchCommands.ACTIONS.values():
            assert callable(getattr(FolderSearchApp, f"action_{action}", None)), action
