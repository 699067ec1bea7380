"""Error types raised by the Moonlight Ledger engine."""

from __future__ import annotations


class MoonlightError(Exception):
    """Base class for all engine errors."""


class ValidationError(MoonlightError, ValueError):
    """A required input field is missing or invalid; nothing was changed."""


class PersistenceError(MoonlightError):
    """Stored state could not be read or written."""


class RemoteServiceError(MoonlightError):
    """The remote insight service failed or returned an unusable body."""
