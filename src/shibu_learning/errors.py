"""Contract violations raised by the engine."""

from __future__ import annotations


class SessionIncompleteError(ValueError):
    """Raised when a session is finalized before its sequence is exhausted."""


class SessionCompleteError(ValueError):
    """Raised when a response is recorded against a finished session."""


class NoActiveLevelError(ValueError):
    """Raised when an answer arrives while no level is being played."""


__all__ = ["SessionIncompleteError", "SessionCompleteError", "NoActiveLevelError"]
