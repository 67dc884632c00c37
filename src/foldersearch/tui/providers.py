"""Ctrl+P command palette entries for the folder browser."""

from __future__ import annotations

from functools import partial

from textual.command import DiscoveryHit, Hit, Hits, Provider


class FolderSearchCommands(Provider):
    """Browser actions by name; the palette lists them all before any typing."""

    ACTIONS: dict[str, str] = {
        "Enter Highlighted Directory": "enter_dir",
        "Go To Parent Directory": "parent_dir",
        "Pick Current Directory": "select_current",
        "Rescan Directory": "refresh",
        "Filter Directories": "focus_filter",
        "Clear Filter": "clear_filter",
        "Toggle Case Sensitivity": "toggle_case",
        "Quit": "quit",
    }

    def _runner(self, action: str):
        return partial(self.app.run_action, action)

    async def discover(self) -> Hits:
        for title, action in self.ACTIONS.items():
            yield DiscoveryHit(title, self._runner(action))

    async def search(self, query: str) -> Hits:
        matcher = self.matcher(query)
        for title, action in self.ACTIONS.items():
            score = matcher.match(title)
            if score > 0:
                yield Hit(score, matcher.highlight(title), self._runner(action), help=f"action: {action}")
