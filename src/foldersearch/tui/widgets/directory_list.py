"""List widget showing the child directories of the current path."""

from __future__ import annotations

from textual.widgets import Label, ListItem, ListView

from foldersearch.tui.telemetry import get_telemetry


class DirectoryItem(ListItem):
    """One child directory row, rendered as ``N. name``."""

    def __init__(self, dir_name: str, position: int) -> None:
        super().__init__(Label(f"{position}. {dir_name}"))
        self.dir_name = dir_name


class DirectoryList(ListView):
    """Keyboard-navigable list of directory names.

    Enter posts ``ListView.Selected``; the App maps it to a selection.
    Moving in and out of directories is bound on the App.
    """

    DEFAULT_CSS = """
    DirectoryList {
        width: 100%;
        height: 1fr;
        background: $surface;
    }
    DirectoryList > DirectoryItem.--highlight {
        color: $accent;
        text-style: bold;
    }
    """

    def __init__(self) -> None:
        super().__init__(id="directory-list")
        self._names: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    @property
    def highlighted_name(self) -> str | None:
        item = self.highlighted_child
        if isinstance(item, DirectoryItem):
            return item.dir_name
        return None

    async def show_items(self, names: tuple[str, ...]) -> None:
        """Replace all rows and highlight the first one."""
        self._names = names
        await self.clear()
        if names:
            await self.extend(
                DirectoryItem(name, position) for position, name in enumerate(names, start=1)
            )
            self.index = 0
        get_telemetry().log.debug(f"directory list refreshed count={len(names)}")
