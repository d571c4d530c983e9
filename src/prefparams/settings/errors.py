"""Errors raised while constructing settings parameters and coordinators.

Every condition here is detected synchronously at construction time. The
base class derives from ValueError so callers that guard construction with
``except ValueError`` keep working.
"""

from __future__ import annotations

__all__ = [
    "SettingsParameterError",
    "InvalidKeyError",
    "InvalidStrategyError",
    "InvalidTimeoutError",
    "UnsupportedCommitStrategyError",
    "CommitContextError",
]


class SettingsParameterError(ValueError):
    """Base class for prefparams construction errors."""


class InvalidKeyError(SettingsParameterError):
    """Parameter key is not a string or is empty/whitespace."""


class InvalidStrategyError(SettingsParameterError):
    """Debouncing was requested for a parameter that is not manually committed."""


class InvalidTimeoutError(SettingsParameterError):
    """Debounce window is not a positive number of milliseconds."""


class UnsupportedCommitStrategyError(SettingsParameterError):
    """A value that is not a CommitStrategy reached strategy wiring."""


class CommitContextError(SettingsParameterError):
    """No event loop is available to host the deferred commit worker."""
