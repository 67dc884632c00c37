"""Background scan worker and its single-slot request/response channel.

The channel admits at most one unacknowledged request: ``send`` blocks
until the previous result has been taken with ``receive``. Responses
therefore arrive in request order and no locking of navigation state is
needed. Shutdown is one-shot and wakes every blocked party.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from queue import Queue

from foldersearch.dirsearch import list_directories
from foldersearch.errors import ChannelClosedError, InitError
from foldersearch.models import ScanRequest, ScanResult, SearchOptions

logger = logging.getLogger(__name__)

SearchFunc = Callable[[str, SearchOptions], ScanResult]


class ScanChannel:
    """Synchronous single-slot handoff between the controller and the worker."""

    def __init__(self) -> None:
        self._slot = threading.Semaphore(1)
        self._requests: Queue[ScanRequest | None] = Queue()
        self._results: Queue[ScanResult | None] = Queue()
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._in_flight = 0

    @property
    def closed(self) -> bool:
        return self._done.is_set()

    @property
    def in_flight(self) -> int:
        """Number of requests sent whose result has not been received (0 or 1)."""
        with self._lock:
            return self._in_flight

    # ------------------------------------------------------------------
    # Controller side
    # ------------------------------------------------------------------

    def send(self, request: ScanRequest) -> None:
        """Hand a request to the worker, blocking while another is unacknowledged.

        Raises:
            ChannelClosedError: If shutdown has been signalled.
        """
        if self._done.is_set():
            raise ChannelClosedError(f"scan request for {request.path} sent after shutdown")
        self._slot.acquire()
        with self._lock:
            if self._done.is_set():
                # Pass the wake-up on to any other blocked sender
                self._slot.release()
                raise ChannelClosedError(f"scan request for {request.path} sent after shutdown")
            self._in_flight += 1
            self._requests.put(request)

    def receive(self, timeout: float | None = None) -> ScanResult | None:
        """Take the next result and free the slot.

        Returns ``None`` once the channel is shut down.

        Raises:
            queue.Empty: If ``timeout`` elapses with no result.
        """
        result = self._results.get(timeout=timeout)
        if result is None:
            # Leave the sentinel for any other receiver
            self._results.put(None)
            return None
        with self._lock:
            self._in_flight -= 1
        self._slot.release()
        return result

    def shutdown(self) -> None:
        """Signal shutdown to the worker and all waiters.

        Raises:
            ChannelClosedError: If shutdown was already signalled.
        """
        with self._lock:
            if self._done.is_set():
                raise ChannelClosedError("scan channel already shut down")
            self._done.set()
        self._requests.put(None)
        self._results.put(None)
        self._slot.release()

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def accept(self) -> ScanRequest | None:
        """Block for the next request; ``None`` means shut down."""
        request = self._requests.get()
        if request is None or self._done.is_set():
            return None
        return request

    def reply(self, result: ScanResult) -> bool:
        """Deliver a result, or drop it and return False if shutdown raced the send."""
        with self._lock:
            if self._done.is_set():
                return False
            self._results.put(result)
            return True


class ScanWorker:
    """The one background thread that reads the filesystem.

    Usage:
        channel = ScanChannel()
        worker = ScanWorker(channel)
        worker.start()
        channel.send(ScanRequest("/tmp"))
        result = channel.receive()
        channel.shutdown()
        worker.join()
    """

    def __init__(self, channel: ScanChannel, search: SearchFunc = list_directories) -> None:
        self.channel = channel
        self._search = search
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread.

        Raises:
            InitError: If the thread cannot be started.
        """
        if self._thread is not None:
            raise InitError("scan worker already started")
        thread = threading.Thread(
            target=self._run,
            name="foldersearch-scan-worker",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as exc:
            raise InitError(f"failed to start scan worker: {exc}") from exc
        self._thread = thread
        logger.debug("scan worker started")

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _scan(self, request: ScanRequest) -> ScanResult:
        try:
            return self._search(request.path, request.options)
        except OSError as exc:
            return ScanResult.failure(request.path, exc)
        except Exception as exc:
            logger.exception("Unexpected error scanning %s", request.path)
            return ScanResult.failure(request.path, OSError(str(exc)))

    def _run(self) -> None:
        while True:
            request = self.channel.accept()
            if request is None:
                break
            result = self._scan(request)
            if not self.channel.reply(result):
                logger.debug("shutdown during reply, dropping result for %s", request.path)
                break
        logger.debug("scan worker stopped")
