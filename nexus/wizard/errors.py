"""
Wizard error taxonomy.

All of these are scoped to a single wizard session and are recoverable:
the user can retry, go back, or switch a field to manual entry.
"""

from __future__ import annotations


class WizardError(Exception):
    """Base class for report wizard errors."""


class CityLookupError(WizardError, LookupError):
    """Regional place resolution failed or produced nothing usable."""

    def __init__(self, message: str, country: str = ""):
        super().__init__(message)
        self.message = message
        self.country = country


class MissingTierError(WizardError):
    """Submit was attempted before a report tier was selected."""


class PreconditionError(WizardError):
    """The request assembler was invoked with incomplete state."""


class SubmissionBlockedError(WizardError):
    """Submit was attempted while the submit control should be disabled."""
