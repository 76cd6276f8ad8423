"""
Error and Warning Types for the Cyclone Panel Analysis

Every stage of the panel pipeline surfaces its failures to the caller using
the classes below. Nothing is retried or recovered internally.

Author: Survey Analytics Team
Date: 2025
"""


class PanelError(Exception):
    """Base class for all panel analysis errors."""


class FormatError(PanelError):
    """Raised when a source file cannot be parsed into a rectangular table."""


class MissingColumnError(PanelError, KeyError):
    """Raised when a required column (e.g. a join key) is absent from a table."""

    def __str__(self):
        # KeyError quotes its message; keep it readable
        return str(self.args[0]) if self.args else ''


class DegenerateInputError(PanelError, ValueError):
    """Raised when a contingency table has a zero marginal (non-positive expected count)."""


class OutOfRangeError(PanelError, ValueError):
    """Raised when a value falls outside every bucket and the policy forbids leaving it undefined."""


class DuplicateKeyWarning(UserWarning):
    """Emitted when an identifier column that must be unique contains repeated values."""
