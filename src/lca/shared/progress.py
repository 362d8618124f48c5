"""Rich progress display and interactive input for long-running commands."""

from __future__ import annotations

import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt

console = Console()


class TaskProgress:
    """Spinner rows for the steps of a multi-step command (A/B runs, portraits)."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_ids: dict[str, int] = {}

    def __enter__(self) -> "TaskProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start_step(self, step: str) -> None:
        tid = self._progress.add_task(f"[cyan]{step}[/]", total=None)
        self._task_ids[step] = tid

    def update_step(self, step: str, status: str) -> None:
        if step not in self._task_ids:
            self.start_step(step)
        self._progress.update(self._task_ids[step], description=f"[cyan]{step}[/]: {status}")

    def finish_step(self, step: str) -> None:
        if step in self._task_ids:
            self._progress.update(
                self._task_ids[step], description=f"[green]✓ {step}[/]", completed=True,
            )

    def fail_step(self, step: str, error: str) -> None:
        if step in self._task_ids:
            self._progress.update(
                self._task_ids[step], description=f"[red]✗ {step}: {error}[/]", completed=True,
            )

    def print_heading(self, label: str) -> None:
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))


async def ask_user(prompt: str) -> str | None:
    """Read one line from the user without blocking the event loop.

    Returns ``None`` when stdin is not a terminal or is closed, which ends
    interactive loops such as ``lca chat``.
    """
    if not sys.stdin.isatty():
        console.print(f"[yellow]Non-interactive input, skipping prompt:[/] {prompt}")
        return None

    # Keep httpx and store chatter out of the prompt line.
    root_logger = logging.getLogger()
    prev_level = root_logger.level
    root_logger.setLevel(logging.CRITICAL)

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, lambda: Prompt.ask(f"\n[yellow]{prompt}[/]"))
    except (EOFError, KeyboardInterrupt):
        return None
    finally:
        root_logger.setLevel(prev_level)
