"""
Notification sinks.

The engine reports transient and hard failures through ``notify(message,
severity)``; sinks are fire-and-forget.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from loguru import logger
from rich.console import Console


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notifier(Protocol):
    def notify(self, message: str, severity: Severity) -> None: ...


class LoggingNotifier:
    """Route notifications to the log."""

    _LEVELS = {
        Severity.SUCCESS: "SUCCESS",
        Severity.ERROR: "ERROR",
        Severity.WARNING: "WARNING",
        Severity.INFO: "INFO",
    }

    def notify(self, message: str, severity: Severity) -> None:
        logger.log(self._LEVELS[severity], message)


class ConsoleNotifier:
    """Print notifications to the terminal."""

    _STYLES = {
        Severity.SUCCESS: ("green", "[OK]"),
        Severity.ERROR: ("red", "[!]"),
        Severity.WARNING: ("yellow", "[!]"),
        Severity.INFO: ("cyan", "[i]"),
    }

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def notify(self, message: str, severity: Severity) -> None:
        style, tag = self._STYLES[severity]
        self.console.print(f"[{style}]{tag}[/{style}] {message}", highlight=False)


class RecordingNotifier:
    """Keep notifications in memory."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity) -> None:
        self.messages.append((message, severity))

    def of(self, severity: Severity) -> list[str]:
        return [message for message, level in self.messages if level == severity]


def notify_safely(notifier: Notifier, message: str, severity: Severity) -> None:
    """Deliver a notification; a failing sink is logged, never raised."""
    try:
        notifier.notify(message, severity)
    except Exception as e:
        logger.warning(f"Notification sink failed: {e}")
