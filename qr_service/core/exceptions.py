"""
Custom Exceptions

This module defines the error taxonomy of the QR code service.

- ValidationError: input fails the name/URL constraints, nothing is written
- NotFoundError: record absent, inactive, or owned by someone else
- StaticQRCodeError: attempt to change the destination of a static code
- TransientStoreError: database failure during a mutating or logging operation
- AuthenticationError: missing, invalid, expired or revoked credentials
"""

from typing import List, Optional


class QRServiceException(Exception):
    """Base exception for the QR code service."""
    pass


class ValidationError(QRServiceException):
    """Raised when one or more input constraints are violated."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class NotFoundError(QRServiceException):
    """Raised when a requested record does not exist for the caller."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")


class StaticQRCodeError(QRServiceException):
    """Raised when a static QR code's destination would be changed."""

    def __init__(self, qr_code_id: str):
        self.qr_code_id = qr_code_id
        super().__init__(
            f"QR code '{qr_code_id}' is static; its destination is printed "
            "into the image and cannot be changed"
        )


class TransientStoreError(QRServiceException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class AuthenticationError(QRServiceException):
    """Raised when a caller cannot be authenticated."""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class DuplicateAccountError(AuthenticationError):
    """Raised on sign-up with an email that is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account for '{email}' already exists")
