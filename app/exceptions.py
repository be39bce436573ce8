"""Domain exceptions raised by the attendance services."""
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is malformed.

    Aggregate failures (e.g. a spreadsheet with several bad rows) carry the
    individual messages in ``errors``.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else []


class NotFoundError(DomainError):
    """Raised when a referenced employee or time entry does not exist."""


class ConflictError(DomainError):
    """Raised when a time entry already exists for an employee and day."""


class EmptyInputError(DomainError):
    """Raised when an uploaded workbook has no sheet or no data rows."""
