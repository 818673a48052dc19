from __future__ import annotations

"""Exception hierarchy shared by the grid, registry, mapper and session layers.

Every mutation that raises one of these leaves the prior state untouched, so
callers can report the message and let the user retry.
"""

__all__ = [
    "TableFormError",
    "ValidationError",
    "DuplicateEmailError",
    "StructureResolutionError",
    "TableNotFoundError",
    "EmailNotFoundError",
    "SubmissionError",
]


class TableFormError(Exception):
    """Base exception for tableform."""
    pass


class ValidationError(TableFormError):
    """Missing required field, no structure selected, zero recipients, etc."""
    pass


class DuplicateEmailError(ValidationError):
    """Raised when an email edit would duplicate another non-empty address."""
    pass


class StructureResolutionError(TableFormError):
    """A table's origin structure is no longer in the loaded catalog."""
    pass


class TableNotFoundError(TableFormError, LookupError):
    pass


class EmailNotFoundError(TableFormError, LookupError):
    pass


class SubmissionError(TableFormError):
    """Webhook submission did not succeed (status/body kept for reporting)."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
