"""
Rich + Loguru logging utility for the page snapshot engine.
Provides readable terminal output for snapshots and the diffs between them.
"""

import json
import sys
from pathlib import Path
from datetime import datetime
from typing import Any, Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


# Initialize Rich console
console = Console(stderr=True)


class SnapshotLogger:
    """
    Combines Loguru's sinks with Rich rendering.
    Plain messages go through Loguru; snapshots and summaries are also drawn with Rich.
    """

    def __init__(
        self,
        level: str = "INFO",
        log_to_file: bool = False,
        log_dir: Path = Path("logs"),
        app_name: str = "PageText"
    ):
        self.app_name = app_name
        self.console = console
        self._logger = logger
        self.configure(level=level, log_to_file=log_to_file, log_dir=log_dir)

    def configure(
        self,
        level: str = "INFO",
        log_to_file: bool = False,
        log_dir: Path = Path("logs")
    ):
        """(Re)install the Loguru sinks."""
        self.level = level
        self.log_dir = log_dir

        # Remove default logger
        logger.remove()

        logger.add(
            sys.stderr,
            format="<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=level,
            colorize=True,
        )

        if log_to_file:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"{self.app_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            logger.add(
                log_file,
                format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
                level="DEBUG",
                rotation="10 MB",
                retention="7 days",
            )

    def snapshot(self, text: str, title: str = "Snapshot", is_diff: bool = False):
        """Display snapshot or diff text in a panel."""
        border = "yellow" if is_diff else "cyan"
        panel = Panel(
            Text(text or "(empty page)"),
            title=f"[bold {border}]{title}[/bold {border}]",
            border_style=border,
            padding=(0, 1),
        )
        self.console.print(panel)

    def snapshot_summary(
        self,
        session_id: str,
        control_count: int,
        snapshot_length: int,
        output_length: int,
        is_diff: bool
    ):
        """Display a summary of one snapshot computation."""
        table = Table(title="[bold cyan]Snapshot Summary[/bold cyan]", border_style="cyan")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Session", session_id)
        table.add_row("Interactive Controls", str(control_count))
        table.add_row("Full Snapshot Length", str(snapshot_length))
        table.add_row("Returned", "diff" if is_diff else "full")
        table.add_row("Returned Length", str(output_length))
        self.console.print(table)
        self._logger.debug(
            f"[SNAPSHOT] session={session_id} controls={control_count} "
            f"full={snapshot_length} returned={output_length} diff={is_diff}"
        )

    def show_json(self, data: dict, title: str = "JSON Data"):
        """Display JSON data with syntax highlighting."""
        json_str = json.dumps(data, indent=2)
        syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)
        panel = Panel(syntax, title=f"[bold]{title}[/bold]", border_style="white")
        self.console.print(panel)

    def error(self, message: str, exception: Optional[BaseException] = None):
        """Log an error with optional exception details."""
        error_text = Text(message, style="bold red")
        if exception:
            error_text.append(f"\n\nException: {type(exception).__name__}: {str(exception)}", style="red")

        panel = Panel(
            error_text,
            title="[bold red]Error[/bold red]",
            border_style="red",
            padding=(1, 2),
        )
        self.console.print(panel)
        self._logger.opt(exception=exception).error(f"[ERROR] {message}")

    def success(self, message: str):
        """Display a success message."""
        self.console.print(f"[bold green]OK:[/bold green] {message}")
        self._logger.info(f"[SUCCESS] {message}")

    def info(self, message: str):
        """Standard info logging."""
        self._logger.info(message)

    def debug(self, message: str):
        """Debug logging."""
        self._logger.debug(message)

    def warning(self, message: str, exception: Optional[BaseException] = None):
        """Warning logging."""
        self._logger.opt(exception=exception).warning(message)

    def action(self, action_type: str, details: dict[str, Any]):
        """Log a browser action."""
        self._logger.info(f"[ACTION] {action_type}: {details}")

    def banner(self, text: str):
        """Display a banner/header."""
        self.console.print()
        self.console.rule(f"[bold magenta]{text}[/bold magenta]", style="magenta")
        self.console.print()


# Global logger instance
snapshot_logger = SnapshotLogger()
