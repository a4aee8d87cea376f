"""Exception types shared across the service."""
from typing import Optional


class DrsCareError(Exception):
    """Base class for service errors."""
    pass


class UnauthenticatedError(DrsCareError):
    """Raised when a protected route is called without a bearer token."""

    message = "unAthorized access"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class ForbiddenError(DrsCareError):
    """Raised for a bad token, a mismatched identity, or a missing admin role."""

    message = "forbidden access"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class InvalidTokenError(DrsCareError):
    """Raised when a token is malformed, tampered with, or expired."""
    pass


class DuplicateRecordError(DrsCareError):
    """Raised when an insert collides with an existing primary key."""
    pass


class MailTransportError(DrsCareError):
    """Raised by a mail transport when a message could not be handed off."""
    pass
