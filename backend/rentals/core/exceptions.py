# rentals/core/exceptions.py
from fastapi import status


class RentalError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RentalError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(RentalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(RentalError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RentalError):
    status_code = status.HTTP_409_CONFLICT
