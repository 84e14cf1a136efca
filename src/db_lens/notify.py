"""User-visible message channel.

Providers report configuration and connection problems here rather than
raising; the host decides how to show them (editor toast, terminal, ...).
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Surface messages to the user."""

    async def error(self, message: str) -> None:
        """Show an error message."""
        ...


class ConsoleNotifier:
    """Print messages to stderr with Rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    async def error(self, message: str) -> None:
        logger.debug("error shown to user: %s", message)
        self.console.print(f"[red]{escape(message)}[/red]")


class RecordingNotifier:
    """Keep messages in memory instead of showing them."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    async def error(self, message: str) -> None:
        self.errors.append(message)
