"""Custom Textual messages for the folder browser.

The scan receiver thread and the widgets talk to the App only through
these messages; the App owns the NavigationController.
"""

from __future__ import annotations

from textual.message import Message

from foldersearch.models import ScanResult


class ScanCompleted(Message):
    """Posted by the receiver thread when the scan worker replies."""

    def __init__(self, result: ScanResult) -> None:
        self.result = result
        super().__init__()


class PatternSubmitted(Message):
    """Posted by the filter bar when Enter is pressed."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__()
