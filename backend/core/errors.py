"""Error types raised by the service layer.

Each error maps to one HTTP status; ``backend.main`` renders them as
``{"error": message}`` responses.
"""

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """A required field is missing or a value is malformed."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Bad or missing credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Authenticated, but the role does not allow the operation."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """A uniqueness constraint was violated."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class UnexpectedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
