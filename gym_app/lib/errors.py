"""
Error types raised by the storage core.

Services reject malformed input with ValidationError before any
transaction opens. Anything the SQLite driver raises at the store boundary
is rolled back and re-raised as StorageError.
"""


class GymAppError(RuntimeError):
    """Base class for all errors raised by gym_app."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GymAppError):
    """Input has the wrong shape or would break the group invariant."""


class NotFoundError(GymAppError):
    """A referenced entity does not exist."""


class StorageError(GymAppError):
    """Connection, transaction or migration failure at the store boundary."""
