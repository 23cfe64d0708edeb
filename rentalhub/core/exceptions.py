"""
Typed errors raised by the rental coordinator and the entity store.

Each error carries the HTTP status the transport layer answers with; the
exception handlers in rentalhub.api.errors turn them into the uniform
error envelope.
"""

from typing import Optional

from fastapi import status


class RentalError(Exception):
    """Base error for rental domain failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "Bad Request"

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(RentalError):
    """Malformed or missing required field."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"


class NotFound(RentalError):
    """Referenced asset, customer or booking does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"


class Conflict(RentalError):
    """Operation forbidden by the current state."""

    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class StorageConflict(Conflict):
    """A uniqueness or foreign-key constraint rejected the write."""


class Unauthorized(RentalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
