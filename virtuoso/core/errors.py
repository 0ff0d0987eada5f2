"""Error types surfaced to the user by the recording store and session."""

from __future__ import annotations


class VirtuosoError(Exception):
    """Base class for all user-facing Virtuoso errors."""


class ValidationError(VirtuosoError):
    """Bad user input: blank title, empty recording or malformed notes."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class RetrievalError(VirtuosoError):
    """Stored recordings could not be read back."""


class PersistenceError(VirtuosoError):
    """A recording could not be saved for reasons other than validation."""
