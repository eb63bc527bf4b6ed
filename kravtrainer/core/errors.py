"""
Error taxonomy for the session engine.

Precondition violations are raised synchronously to the caller and never
retried. Collaborator failures (audio, storage, notifications) are handled
inside the engine and never surface as exceptions.
"""

from __future__ import annotations

from kravtrainer.core.constants import (
    MSG_NO_TECHNIQUES_AVAILABLE,
    MSG_NO_TECHNIQUES_SELECTED,
    MSG_SESSION_ALREADY_ACTIVE,
)


class SessionEngineError(RuntimeError):
    """Base class for every error raised by the session engine."""


class AlreadyActiveError(SessionEngineError):
    """A session was started while another one is still active."""

    def __init__(self, message: str = MSG_SESSION_ALREADY_ACTIVE):
        super().__init__(message)


class NoSelectableTechniquesError(SessionEngineError):
    """The pool offered at start contains no selected technique."""

    def __init__(self, message: str = MSG_NO_TECHNIQUES_SELECTED):
        super().__init__(message)


class EmptyPoolError(SessionEngineError, ValueError):
    """A selection strategy was asked to pick from an empty pool."""

    def __init__(self, message: str = MSG_NO_TECHNIQUES_AVAILABLE):
        super().__init__(message)


class InvalidSessionConfigError(ValueError):
    """Session configuration is out of bounds."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class CatalogError(ValueError):
    """A technique catalog or fight list file could not be read."""
