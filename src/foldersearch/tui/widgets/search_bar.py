"""Filter bar for the directory name pattern.

Edits go to ``input_subject``, which the App debounces; Enter goes to
``enter_subject`` so a pattern applies at once and focus returns to the
list. Up/Down recall earlier submitted patterns.
"""

from __future__ import annotations

from reactivex.subject import Subject
from textual import events
from textual.widgets import Input

from foldersearch.tui.messages import PatternSubmitted
from foldersearch.tui.telemetry import get_telemetry


class PatternHistory:
    """Submitted patterns, oldest first, with a recall cursor."""

    def __init__(self) -> None:
        self.entries: list[str] = []
        self._cursor: int | None = None

    def record(self, pattern: str) -> None:
        if pattern and self.entries[-1:] != [pattern]:
            self.entries.append(pattern)
        self._cursor = None

    def older(self) -> str | None:
        if not self.entries:
            return None
        if self._cursor is None:
            self._cursor = len(self.entries) - 1
        else:
            self._cursor = max(self._cursor - 1, 0)
        return self.entries[self._cursor]

    def newer(self) -> str | None:
        """Step towards the newest entry; past it the recall ends with ``""``."""
        if self._cursor is None:
            return None
        if self._cursor + 1 < len(self.entries):
            self._cursor += 1
            return self.entries[self._cursor]
        self._cursor = None
        return ""

    def reset(self) -> None:
        self._cursor = None


class SearchBar(Input):
    """Pattern input feeding the App's reactive filter pipeline."""

    DEFAULT_CSS = """
    SearchBar {
        dock: top;
        height: 3;
        padding: 0 1;
        border-bottom: solid $primary;
    }
    """

    def __init__(self, pattern: str = "") -> None:
        super().__init__(
            value=pattern,
            placeholder="Filter directories... (/ to focus, Esc to return)",
            id="search-bar",
        )
        self.input_subject: Subject[str] = Subject()
        self.enter_subject: Subject[str] = Subject()
        self.history = PatternHistory()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input is self:
            self.input_subject.on_next(event.value.strip())

    def on_key(self, event: events.Key) -> None:
        if event.key == "enter":
            event.prevent_default()
            self._submit(self.value.strip())
            return

        if event.key == "up":
            recalled = self.history.older()
        elif event.key == "down":
            recalled = self.history.newer()
        else:
            return
        if recalled is not None:
            self.value = recalled
            event.prevent_default()

    def _submit(self, pattern: str) -> None:
        self.history.record(pattern)
        self.enter_subject.on_next(pattern)
        self.post_message(PatternSubmitted(pattern))
        get_telemetry().log.info(f"pattern submitted pattern={pattern!r}")

    def clear_and_reset(self) -> None:
        """Empty the bar, which clears the pattern."""
        self.value = ""
        self.history.reset()
        self.enter_subject.on_next("")
