"""CLI entry point for the folder browser.

Running ``foldersearch`` with no command opens the interactive browser and
prints the chosen directory to stdout, so a shell function can ``cd`` into
it. Commands:
  - list: one non-interactive scan printed as a table
  - logs: browse the TUI's JSON-lines log files
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from foldersearch.config import BrowserConfig, load_config
from foldersearch.dirsearch import format_results, list_directories
from foldersearch.errors import FolderSearchError
from foldersearch.models import ErrorPolicy
from foldersearch.paths import resolve_start_path

app = typer.Typer(
    help="Folder Search - browse child directories interactively and pick one",
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)

_LEVEL_ORDER = {"DEBUG": 0, "INFO": 1, "WARNING": 2, "ERROR": 3, "CRITICAL": 4}
_LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold red",
    "CRITICAL": "bold red on white",
}

DirOption = Annotated[
    Optional[Path],
    typer.Option("--dir", "-d", help="Initial directory (default: current directory)", file_okay=False),
]
NameOption = Annotated[
    Optional[str],
    typer.Option("--name", "-n", help="Only show directories whose name contains this"),
]
CaseOption = Annotated[
    bool,
    typer.Option("--case-sensitive", "-c", help="Match the name pattern case-sensitively"),
]
IgnoreOption = Annotated[
    Optional[list[str]],
    typer.Option("--ignore", "-i", help="Directory name to hide (repeatable, replaces the default list)"),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="Path to config JSON (default: ~/.config/foldersearch/config.json)"),
]


def _build_config(
    config_path: Path | None,
    start_dir: Path | None,
    name: str | None,
    case_sensitive: bool,
    ignore: list[str] | None,
) -> BrowserConfig:
    """Load the config file and lay command-line flags over it."""
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(code=1)

    if start_dir is not None:
        config.start_dir = start_dir
    if name is not None:
        config.pattern = name
    if case_sensitive:
        config.case_sensitive = True
    if ignore:
        config.ignore_names = set(ignore)
    return config


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    start_dir: DirOption = None,
    name: NameOption = None,
    case_sensitive: CaseOption = False,
    ignore: IgnoreOption = None,
    strict_errors: Annotated[
        bool,
        typer.Option("--strict-errors", help="Stop navigation on the first scan error"),
    ] = False,
    config_path: ConfigOption = None,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Write JSON-lines logs into this directory"),
    ] = None,
) -> None:
    """Browse directories interactively; prints the picked path on exit."""
    if ctx.invoked_subcommand is not None:
        return

    config = _build_config(config_path, start_dir, name, case_sensitive, ignore)
    if strict_errors:
        config.error_policy = ErrorPolicy.STRICT
    if log_dir is not None:
        config.log_dir = log_dir

    from foldersearch.tui import run_tui

    try:
        selection = run_tui(config)
    except FolderSearchError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if selection is not None:
        typer.echo(selection)


@app.command(name="list")
def list_cmd(
    start_dir: DirOption = None,
    name: NameOption = None,
    case_sensitive: CaseOption = False,
    ignore: IgnoreOption = None,
    config_path: ConfigOption = None,
    plain: Annotated[
        bool,
        typer.Option("--plain", "-p", help="Print bare names, one per line"),
    ] = False,
) -> None:
    """Scan one directory and print its matching child directories."""
    config = _build_config(config_path, start_dir, name, case_sensitive, ignore)

    try:
        path = resolve_start_path(config.start_dir)
    except FolderSearchError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    result = list_directories(path, config.search_options())
    if result.error is not None:
        err_console.print(f"[red]Error walking directory:[/red] {result.error}")
        raise typer.Exit(code=1)

    if plain:
        for entry in result.entries:
            typer.echo(entry)
        return
    console.print(format_results(result))


def _iter_log_entries(log_files: list[Path], min_level: int, trace: str | None):
    """Yield parsed log entries passing the level and trace filters.

    Lines that are not valid JSON are yielded as ``None`` so the caller
    can count them.
    """
    for log_file in log_files:
        with log_file.open(encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    yield None
                    continue
                if _LEVEL_ORDER.get(entry.get("level", "INFO"), 0) < min_level:
                    continue
                if trace and not entry.get("trace", "").startswith(trace):
                    continue
                yield entry


def _log_table(entries: list[dict]) -> Table:
    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("Time", style="dim", no_wrap=True, min_width=19)
    table.add_column("Level", no_wrap=True, min_width=7)
    table.add_column("Trace", style="dim", no_wrap=True, min_width=8)
    table.add_column("Message", overflow="fold")

    for entry in entries:
        lvl = entry.get("level", "")
        style = _LEVEL_STYLES.get(lvl)
        trace_id = entry.get("trace", "")[:8]
        table.add_row(
            entry.get("ts", ""),
            f"[{style}]{lvl}[/{style}]" if style else lvl,
            "--------" if trace_id.strip("0") == "" else trace_id,
            entry.get("msg", ""),
        )
    return table


@app.command(name="logs")
def logs_cmd(
    log_dir: Annotated[
        Path,
        typer.Option("--log-dir", help="Directory holding tui-*.log files"),
    ] = Path("logs"),
    trace: Annotated[
        Optional[str],
        typer.Option("--trace", "-t", help="Only entries whose trace ID starts with this"),
    ] = None,
    level: Annotated[
        Optional[str],
        typer.Option("--level", "-l", help="Minimum level: DEBUG, INFO, WARNING or ERROR"),
    ] = None,
    tail: Annotated[
        int,
        typer.Option("--tail", "-n", help="Keep only the last N entries (0 = all)"),
    ] = 0,
) -> None:
    """Show browser session logs written with --log-dir.

    \\b
      foldersearch logs --log-dir ~/.cache/foldersearch
      foldersearch logs --level ERROR
      foldersearch logs --trace 4bf92f35 --tail 20
    """
    min_level = 0
    if level:
        if level.upper() not in _LEVEL_ORDER:
            err_console.print(f"[red]Error:[/red] unknown level {level!r}")
            raise typer.Exit(code=1)
        min_level = _LEVEL_ORDER[level.upper()]

    log_files = sorted(log_dir.glob("tui-*.log")) if log_dir.is_dir() else []
    if not log_files:
        console.print(f"[dim]No TUI log files found in {log_dir}[/dim]")
        return

    parsed = list(_iter_log_entries(log_files, min_level, trace))
    entries = [entry for entry in parsed if entry is not None]
    skipped = len(parsed) - len(entries)
    if tail > 0:
        entries = entries[-tail:]

    if not entries:
        console.print("[dim]No log entries matched.[/dim]")
        return

    console.print(_log_table(entries))
    note = f", {skipped} unparsable line(s) skipped" if skipped else ""
    console.print(f"[dim]{len(entries)} entries from {len(log_files)} file(s){note}[/dim]")
