"""Folder browser interactive TUI.

Textual front end over the navigation controller and scan worker.
"""

from __future__ import annotations

import logging

from foldersearch.config import BrowserConfig
from foldersearch.errors import FolderSearchError, InitError
from foldersearch.navigation import NavigationController
from foldersearch.worker import ScanChannel, ScanWorker

logger = logging.getLogger(__name__)

WORKER_JOIN_SECONDS = 1.0


def run_tui(config: BrowserConfig) -> str | None:
    """Start the scan worker, issue the first scan and run the TUI.

    Imports of the Textual app are deferred so ``foldersearch list`` stays
    fast to start.

    Args:
        config: Browser configuration (start dir, options, policy, logging).

    Returns:
        The selected absolute path, or ``None`` if the user quit.

    Raises:
        InitError: If the start directory cannot be resolved or the worker
            cannot start.
        ScanError: If the initial directory scan fails.
        FolderSearchError: If the UI exits abnormally.
    """
    from foldersearch.tui.app import FolderSearchApp
    from foldersearch.tui.telemetry import configure_file_logging

    if config.log_dir is not None:
        configure_file_logging(str(config.log_dir))

    channel = ScanChannel()
    worker = ScanWorker(channel)
    worker.start()

    controller = NavigationController(channel, config.search_options(), config.error_policy)
    try:
        controller.start(config.start_dir)
    except InitError:
        channel.shutdown()
        raise

    logger.info("starting UI event loop")
    app = FolderSearchApp(controller)
    try:
        selection = app.run()
    finally:
        if not channel.closed:
            channel.shutdown()
        worker.join(WORKER_JOIN_SECONDS)

    if app.fatal_error is not None:
        raise app.fatal_error
    if app.return_code:
        raise FolderSearchError(f"UI exited with code {app.return_code}")
    logger.info("application exiting normally")
    return selection
