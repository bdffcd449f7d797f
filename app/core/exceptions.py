"""Domain exceptions raised by services and rendered by `app.core.errors`."""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """Base exception carrying the HTTP status and a short caller-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation error"


class ConflictError(AppError):
    """A uniqueness constraint would be violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class AccountExistsError(ConflictError):
    """Signup conflict.

    Reported with a 2xx status so clients prompt for different input instead
    of treating it as a hard failure.
    """

    status_code = status.HTTP_205_RESET_CONTENT
    code = "ACCOUNT_EXISTS"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class NotVerifiedError(AppError):
    """Valid identity whose account has not completed OTP verification."""

    status_code = status.HTTP_203_NON_AUTHORITATIVE_INFORMATION
    code = "NOT_VERIFIED"
    default_message = "Account not verified"


class IncorrectCodeError(AppError):
    status_code = status.HTTP_205_RESET_CONTENT
    code = "INCORRECT_CODE"
    default_message = "Please enter correct OTP"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ServerError(AppError):
    """A collaborator (store, email, asset store) failed unexpectedly."""
