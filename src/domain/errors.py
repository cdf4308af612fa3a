"""Domain exceptions raised by the booking wizard."""

from __future__ import annotations


class WizardError(Exception):
    """Base exception for all wizard errors."""


class UnknownStepError(WizardError):
    """Raised when a step id or index is not part of the current topology."""

    def __init__(self, step: object):
        super().__init__(f"Unknown wizard step: {step!r}")
        self.step = step


class DraftValidationError(WizardError):
    """Raised when the draft (or one step of it) fails validation.

    ``errors`` maps a dotted field path to a human readable message.
    """

    def __init__(self, errors: dict[str, str], message: str | None = None):
        super().__init__(message or "Draft is not valid")
        self.errors = dict(errors)
