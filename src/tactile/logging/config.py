"""
Logging Configuration - Structured logging with Rich console.

Provides readable logging for debugging geometry resolution and input
dispatch against a live page.
"""

import logging
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

# Custom theme for Tactile logs
TACTILE_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "debug": "dim",
        "interaction": "bold green",
        "key": "bold magenta",
        "geometry": "blue",
        "cdp": "dim cyan",
    }
)

# Shared console instance
console = Console(theme=TACTILE_THEME)


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    show_path: bool = False,
) -> None:
    """
    Configure logging with Rich console handler.

    Args:
        level: Logging level
        show_path: Show file path in log messages
    """
    handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=show_path,
        rich_tracebacks=True,
        tracebacks_show_locals=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    tactile_logger = logging.getLogger("tactile")
    tactile_logger.setLevel(level)
    tactile_logger.handlers = [handler]
    tactile_logger.propagate = False

    for name in ["tactile.browser", "tactile.geometry", "tactile.input", "tactile.watchdogs"]:
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with tactile prefix.

    Args:
        name: Logger name (will be prefixed with 'tactile.')

    Returns:
        Configured logger
    """
    if name != "tactile" and not name.startswith("tactile."):
        name = f"tactile.{name}"
    return logging.getLogger(name)


class TactileLogger:
    """
    Structured logger for Tactile operations.

    Provides semantic logging methods for different operation types.
    """

    def __init__(self, name: str = "tactile"):
        self._logger = get_logger(name)

    def interaction(self, action: str, target: str = "", state: str = "") -> None:
        """Log an interaction state."""
        msg = f"[interaction]{action}[/interaction]"
        if target:
            msg += f" → {escape(target)}"
        if state:
            msg += " " + escape(f"[{state}]")
        self._logger.info(msg, extra={"action": action, "state": state or None})

    def geometry(self, target: str, x: float, y: float, details: str = "") -> None:
        """Log a resolved point (debug level)."""
        msg = f"[geometry]{escape(target)}[/geometry] @ ({x:.1f}, {y:.1f})"
        if details:
            msg += f" - {escape(details)}"
        self._logger.debug(msg, extra={"handle": target})

    def key(self, name: str, phase: str, modifiers: int = 0) -> None:
        """Log a key event (debug level)."""
        self._logger.debug(f"[key]{escape(repr(name))}[/key] {phase} (modifiers={modifiers})")

    def cdp(self, method: str, params: dict | None = None) -> None:
        """Log CDP command (debug level)."""
        param_str = escape(str(params)[:50]) if params else ""
        self._logger.debug(f"[cdp]CDP[/cdp]: {method}({param_str})")

    def error(self, message: str, exc: Exception | None = None) -> None:
        """Log error."""
        self._logger.error(f"[error]{escape(message)}[/error]", exc_info=exc)

    def warning(self, message: str) -> None:
        """Log warning."""
        self._logger.warning(f"[warning]{escape(message)}[/warning]")

    def success(self, message: str) -> None:
        """Log success message."""
        self._logger.info(f"[green]✓[/green] {message}")

    def debug(self, message: str) -> None:
        """Log debug message."""
        self._logger.debug(message)

    def info(self, message: str) -> None:
        """Log info message."""
        self._logger.info(message)


# Default logger instance
logger = TactileLogger()
