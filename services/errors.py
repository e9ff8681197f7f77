"""Error types raised by the service layer."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors whose message is safe to return to clients."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailure(ServiceError):
    """Client supplied data that violates the reading contract."""


class StorageFailure(ServiceError):
    """The persistence layer could not complete an operation."""
