"""Configuration loading for the folder browser."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from foldersearch.models import DEFAULT_IGNORE_NAMES, ErrorPolicy, SearchOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "foldersearch" / "config.json"


@dataclass
class BrowserConfig:
    """Browser settings: where to start, what to show, how to react to scan errors."""

    start_dir: Path = field(default_factory=lambda: Path("."))
    pattern: str = ""
    case_sensitive: bool = False
    ignore_names: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE_NAMES))
    error_policy: ErrorPolicy = ErrorPolicy.LENIENT
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Coerce string values loaded from JSON or the CLI."""
        if isinstance(self.start_dir, str):
            self.start_dir = Path(self.start_dir)
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        if isinstance(self.error_policy, str):
            self.error_policy = ErrorPolicy(self.error_policy)

    def search_options(self) -> SearchOptions:
        """Build the immutable options snapshot handed to the scan worker."""
        return SearchOptions(
            pattern=self.pattern,
            case_sensitive=self.case_sensitive,
            ignore_names=frozenset(self.ignore_names),
        )


def load_config(config_path: Path | None = None) -> BrowserConfig:
    """Load browser configuration from JSON, merging over defaults.

    Reads ``DEFAULT_CONFIG_PATH`` when *config_path* is ``None``. A missing
    file yields the defaults. Unknown keys are ignored.

    Args:
        config_path: Optional explicit path to a config JSON file.

    Returns:
        BrowserConfig with values from file merged over defaults.

    Raises:
        ValueError: If the file is not valid JSON or holds an unknown
            ``error_policy``.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return BrowserConfig()

    with open(config_path) as f:
        data = json.load(f)

    kwargs: dict[str, object] = {}

    if "start_dir" in data:
        kwargs["start_dir"] = Path(data["start_dir"])

    if "pattern" in data:
        kwargs["pattern"] = str(data["pattern"])

    if "case_sensitive" in data:
        kwargs["case_sensitive"] = bool(data["case_sensitive"])

    if "ignore_names" in data:
        kwargs["ignore_names"] = set(data["ignore_names"])

    if "error_policy" in data:
        kwargs["error_policy"] = ErrorPolicy(data["error_policy"])

    if data.get("log_dir"):
        kwargs["log_dir"] = Path(data["log_dir"])

    logger.debug("Loaded config from %s", config_path)
    return BrowserConfig(**kwargs)
