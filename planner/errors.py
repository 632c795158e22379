"""
Exception types shared by the data, identity and view layers.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base class carrying a human-readable message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PlannerError):
    """Raised for required-field or format violations, before any backend call."""


class DataError(PlannerError):
    """A backend request against a table failed."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class AuthError(PlannerError):
    """The identity service rejected a request."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.status = status
