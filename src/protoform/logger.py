"""Unified logging for protoform with console output helpers."""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.tree import Tree


class ProtoformLogger(logging.Logger):
    """
    Logger that pairs standard logging with rich console output.

    The standard levels are used for diagnostics; the console helpers
    (success, hint, key_value, tree) are used by the CLI to
    present results.
    """

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        """
        Initialize the logger.

        Args:
            name: Logger name
            level: Initial log level
        """
        super().__init__(name, level)
        self.console = Console()

        handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.addHandler(handler)

    def print(self, message: str) -> None:
        """Print a plain message (with Rich markup support)."""
        self.console.print(message)

    def colored(self, message: str, style: str = "bold cyan") -> None:
        """
        Print a message with a specific style.

        Args:
            message: Message to display
            style: Rich style string (e.g., "green", "red", "dim")
        """
        self.print(f"[{style}]{message}[/{style}]")

    def success(self, message: str) -> None:
        """Print a success message in green with a checkmark."""
        self.print(f"[green]✓[/green] {message}")

    def hint(self, message: str) -> None:
        """Print a dimmed secondary message."""
        self.colored(message, "dim")

    def key_value(self, key: str, value: Any, key_style: str = "dim") -> None:
        """
        Print a formatted key-value pair such as "Path: value".

        Args:
            key: The key/label to display
            value: The value to display
            key_style: Style for the key (default: "dim")
        """
        self.print(f"[{key_style}]{key}:[/{key_style}] {value}")

    def tree(self, tree: Tree) -> None:
        """Print a rich tree."""
        self.console.print(tree)


def get_logger(name: str = "protoform") -> ProtoformLogger:
    """
    Get or create a protoform logger instance.

    Args:
        name: Logger name (default: "protoform")

    Returns:
        ProtoformLogger instance
    """
    previous_class = logging.getLoggerClass()
    logging.setLoggerClass(ProtoformLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous_class)

    return logger  # type: ignore[return-value]
