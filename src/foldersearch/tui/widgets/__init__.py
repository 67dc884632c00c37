"""TUI widget modules for the folder browser."""

from .directory_list import DirectoryItem, DirectoryList
from .search_bar import SearchBar

__all__ = [
    "DirectoryItem",
    "DirectoryList",
    "SearchBar",
]
