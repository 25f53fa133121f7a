"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class GatherlyError(Exception):
    """Base exception for gatherly."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(GatherlyError):
    """Resource not found."""

    pass


class DuplicateError(GatherlyError):
    """Duplicate resource detected."""

    pass


class ValidationError(GatherlyError):
    """Validation error."""

    pass


class InvalidRuleError(ValidationError):
    """Recurrence rule is malformed for its frequency."""

    pass


class InvalidRequestError(ValidationError):
    """Request carries an unsupported value (e.g. RSVP status)."""

    pass


class AuthenticationError(GatherlyError):
    """Authentication failed."""

    pass


class AuthorizationError(GatherlyError):
    """Authorization failed."""

    pass


class ForbiddenError(AuthorizationError):
    """Forbidden operation (authorization denied)."""

    pass


class ConcurrencyConflictError(GatherlyError):
    """A conditional write lost against a concurrent writer."""

    pass


class InfrastructureError(GatherlyError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class BusinessLogicError(GatherlyError):
    """Business logic constraint violation."""

    pass
