"""Typed errors raised by the calculation core.

There is no transient error class: the core performs no I/O, so nothing in
it is ever retried.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error the core raises."""


class ValidationError(EngineError, ValueError):
    """Line item, discount or tax rate data rejected before computation."""


class ConfigurationError(EngineError, ValueError):
    """Reminder policy rejected at configuration-save time."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = list(errors or [])


class ReminderTransitionError(EngineError):
    """A reminder stage cannot be recorded from the invoice's current state."""
