"""Exceptions raised by the progress and assessment services."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the SEL engine."""


class ValidationError(EngineError):
    """Raised when input is rejected before any state is touched."""


class ConflictError(EngineError):
    """Raised when a conditional progress write lost a race with another writer."""


class PersistenceError(EngineError):
    """Raised when storage is unavailable; callers may retry."""
