"""OpenTelemetry spans and JSON-lines logging for the folder browser TUI.

Handlers open spans through ``Telemetry.span``; any record logged while a
span is active carries its trace and span ids into the log file, so one
navigation can be followed through ``foldersearch logs --trace``.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

TRACER_NAME = "foldersearch.tui"
LOG_FILE_PREFIX = "tui-"
NO_TRACE = "0" * 32
NO_SPAN = "0" * 16


class SpanHandle:
    """What a ``with telemetry.span(...)`` block gets; instrumentation errors are dropped."""

    def __init__(self, span: trace.Span) -> None:
        self._span = span

    def set_attribute(self, key: str, value: Any) -> None:
        with contextlib.suppress(Exception):
            self._span.set_attribute(key, value)

    def record_exception(self, exc: BaseException) -> None:
        with contextlib.suppress(Exception):
            self._span.record_exception(exc)


class Telemetry:
    """Tracer plus the ``foldersearch.tui`` logger.

    Usage:
        telemetry = Telemetry.noop()
        with telemetry.span("tui.navigate", move="enter") as span:
            span.set_attribute("nav.target", path)
            telemetry.log.info("navigating")
    """

    def __init__(self, provider: TracerProvider) -> None:
        self.provider = provider
        self.tracer = provider.get_tracer(TRACER_NAME)
        self.log = logging.getLogger(TRACER_NAME)

    @contextlib.contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[SpanHandle]:
        with self.tracer.start_as_current_span(name) as otel_span:
            handle = SpanHandle(otel_span)
            for key, value in attributes.items():
                handle.set_attribute(key, value)
            yield handle

    @classmethod
    def noop(cls) -> Telemetry:
        """Spans are created (so log records get ids) but never exported."""
        return cls(TracerProvider())

    @classmethod
    def for_testing(cls) -> tuple[Telemetry, InMemorySpanExporter]:
        """Telemetry whose finished spans land in the returned exporter."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return cls(provider), exporter


_current: list[Telemetry] = []


def get_telemetry() -> Telemetry:
    """The Telemetry installed by the running App, or a no-op one."""
    if not _current:
        _current.append(Telemetry.noop())
    return _current[0]


def set_telemetry(telemetry: Telemetry) -> None:
    _current[:] = [telemetry]


class TraceContextFilter(logging.Filter):
    """Stamp each record with the ids of the span active when it was logged."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = format(ctx.trace_id, "032x")
            record.span_id = format(ctx.span_id, "016x")
        else:
            record.trace_id = NO_TRACE
            record.span_id = NO_SPAN
        return True


class JsonLinesFormatter(logging.Formatter):
    """Render a record as the one-line JSON object ``foldersearch logs`` reads."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "trace": getattr(record, "trace_id", NO_TRACE),
            "span": getattr(record, "span_id", NO_SPAN),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def log_file_path(log_dir: str | Path) -> Path:
    """Today's log file inside ``log_dir``: ``tui-YYYYMMDD.log``."""
    return Path(log_dir) / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d}.log"


def configure_file_logging(log_dir: str | Path = "logs") -> Path:
    """Route the ``foldersearch`` logger tree into a JSON-lines file.

    The TUI owns the terminal, so nothing is written to stderr. A repeated
    call for the same file reuses the installed handler; a call for a
    different file closes that handler and installs a new one, so records
    only ever go to the most recently configured file.

    Args:
        log_dir: Directory for log files, created if absent.

    Returns:
        Path of the file being written.
    """
    path = log_file_path(log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    target = os.path.abspath(path)

    root = logging.getLogger("foldersearch")
    for handler in list(root.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        if handler.baseFilename == target:
            return path
        root.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.addFilter(TraceContextFilter())
    handler.setFormatter(JsonLinesFormatter())
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return path
