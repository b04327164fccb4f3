"""Rich-based console logger and progress reporter."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from ..core.models import TaskOutcome

APPLICATION_LOGGER = "imagemanager.application"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def open_application_log(path: Path, verbose: bool = False) -> logging.Logger:
    """Return a stdlib logger that appends reporter messages to ``path``."""
    path = Path(path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)

    log = logging.getLogger(APPLICATION_LOGGER)
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    log.propagate = False
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    log.addHandler(handler)
    return log


def close_application_log(log: Optional[logging.Logger]) -> None:
    if log is None:
        return
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()


class RichLogger:
    """Logger and progress reporter using Rich terminal output.

    Implements the ProgressReporter protocol. Messages can be mirrored
    into a stdlib logger (the application log file).
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        mirror: Optional[logging.Logger] = None,
    ):
        """Initialize the logger.

        Args:
            verbose: Show debug messages.
            quiet: Suppress info messages and progress bars.
            console: Output console; stderr by default.
            mirror: Stdlib logger that receives every message.
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._mirror = mirror
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase with a progress bar."""
        self._log(logging.DEBUG, f"{name} ({total})")
        if self._quiet:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def advance_phase(self, amount: int = 1) -> None:
        if self._progress and self._current_task_id is not None:
            self._progress.advance(self._current_task_id, amount)

    def end_phase(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        self._log(logging.INFO, message)
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def warning(self, message: str) -> None:
        self._log(logging.WARNING, message)
        self._console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self._log(logging.ERROR, message)
        self._console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def debug(self, message: str) -> None:
        """Log a debug message (only shown in verbose mode)."""
        self._log(logging.DEBUG, message)
        if self._verbose:
            self._console.print(f"[dim]  {escape(message)}[/dim]")

    def _log(self, level: int, message: str) -> None:
        if self._mirror is not None:
            self._mirror.log(level, message)

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table (verbose mode only)."""
        if self._quiet or not self._verbose:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for key, value in config_items.items():
            table.add_row(key, str(value))
        self._console.print(table)

    def print_outcome(self, outcome: TaskOutcome, title: str) -> None:
        """Print run statistics."""
        if self._quiet:
            return

        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")

        table.add_row("Files Processed", str(outcome.processed_count))
        table.add_row("Duplicate Groups", str(outcome.duplicates_found))
        table.add_row("Reclaimable", decimal(outcome.bytes_reclaimed))
        table.add_row("Relocated", str(outcome.relocated))
        table.add_row("Errors", str(outcome.error_count))
        if outcome.cancelled:
            table.add_row("Status", "[yellow]interrupted[/yellow]")

        self._console.print(table)

    # --- Context Managers ---

    def __enter__(self) -> "RichLogger":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietLogger:
    """Minimal reporter that only shows warnings and errors."""

    def __init__(self, mirror: Optional[logging.Logger] = None):
        self._mirror = mirror

    def start_phase(self, name: str, total: int) -> None:
        pass

    def advance_phase(self, amount: int = 1) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def info(self, message: str) -> None:
        if self._mirror is not None:
            self._mirror.info(message)

    def warning(self, message: str) -> None:
        if self._mirror is not None:
            self._mirror.warning(message)
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        if self._mirror is not None:
            self._mirror.error(message)
        print(f"ERROR: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        if self._mirror is not None:
            self._mirror.debug(message)

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_outcome(self, outcome: TaskOutcome, title: str) -> None:
        pass

    def __enter__(self) -> "QuietLogger":
        return self

    def __exit__(self, *args) -> None:
        pass
