from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code
        # Lower-level explanation (driver error, field details); rendered as `message` in the envelope
        self.detail = detail


class ValidationError(ServiceError):
    default_status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ServiceError):
    default_status_code = status.HTTP_401_UNAUTHORIZED


class InvalidToken(Unauthenticated):
    def __init__(self, message: str = "Invalid token.", detail: Optional[str] = None) -> None:
        super().__init__(message, detail=detail)


class TokenExpired(Unauthenticated):
    def __init__(self, message: str = "Token expired. Please login again.") -> None:
        super().__init__(message)


class Forbidden(ServiceError):
    default_status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    default_status_code = status.HTTP_404_NOT_FOUND


class DuplicateRecord(ServiceError):
    default_status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
