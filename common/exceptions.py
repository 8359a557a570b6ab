"""
Storefront - Custom Exceptions
===============================
Business-level exceptions that can be caught and converted to HTTP responses.
Each class carries the HTTP status it maps to; main.py renders them all
through a single handler.
"""

from fastapi import status


class StorefrontError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An unexpected error occurred."):
        self.message = message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Raised for missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(StorefrontError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(StorefrontError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(StorefrontError):
    """Raised when a requested resource doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateError(StorefrontError):
    """Raised for unique constraint violations at the business level."""
    status_code = status.HTTP_409_CONFLICT


class OTPError(StorefrontError):
    """Raised for OTP-related issues (expired, invalid)."""
    status_code = status.HTTP_400_BAD_REQUEST


class PaymentError(StorefrontError):
    """Raised for payment gateway errors."""
    status_code = status.HTTP_502_BAD_GATEWAY

