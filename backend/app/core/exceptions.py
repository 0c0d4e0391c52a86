"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; the handlers registered in
``app.main`` render them as ``{"status": "error", "message": ...}``.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that are safe to show to the caller."""
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AlreadyExists(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists with this email"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class InvalidCredentialOrCode(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid email or OTP"


class EmailNotVerified(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Please verify your email before logging in. Check your inbox for the OTP code."


class Expired(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "OTP has expired. Please request a new OTP."


class AlreadyVerified(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email already verified. Please login."


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class DispatchFailure(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send email. Please try again."


class GenerationFailure(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to generate itinerary. Please try again."


class StorageFailure(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected database error"
