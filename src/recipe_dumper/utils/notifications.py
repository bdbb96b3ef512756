"""User-facing dump notifications.

Hosts plug in their own notifier (chat messages, GUI toasts); the default
ones write through structlog or a rich console.
"""
from enum import Enum
from typing import Any, Callable, Optional

import structlog
from rich.console import Console


class DumpEvent(Enum):
    """Notification types surfaced by the dump orchestrator."""
    DUPLICATE = "duplicate"
    PROGRESS = "progress"
    COMPLETE = "complete"


# notifier(event, **context)
Notifier = Callable[..., None]


class LoggingNotifier:
    """Reports dump events as structured log lines."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None):
        self.logger = logger or structlog.get_logger(__name__)

    def __call__(self, event: DumpEvent, **context: Any) -> None:
        if event == DumpEvent.DUPLICATE:
            self.logger.warning("Recipe dump already running, request ignored", **context)
        elif event == DumpEvent.PROGRESS:
            self.logger.info("Recipe dump progress", **context)
        elif event == DumpEvent.COMPLETE:
            self.logger.info("Recipe dump complete", **context)


class ConsoleNotifier:
    """Prints dump events to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, event: DumpEvent, **context: Any) -> None:
        if event == DumpEvent.DUPLICATE:
            self.console.print("[yellow]⚠️ A recipe dump is already running[/yellow]")
        elif event == DumpEvent.PROGRESS:
            self.console.print(
                f"[cyan]Dumping recipes: {context.get('completed', 0)}/{context.get('total', 0)} "
                f"({context.get('percent', 0.0):.1f}%)[/cyan]"
            )
        elif event == DumpEvent.COMPLETE:
            self.console.print(f"[green]✅ Recipes dumped to {context.get('path', '')}[/green]")
