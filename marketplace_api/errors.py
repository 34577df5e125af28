"""
Exception hierarchy for the marketplace API.

Services and dependencies raise these; the exception handlers registered
in ``main`` turn them into the JSON envelope with the matching status code.
"""

from typing import Any, Dict, Optional

from fastapi import status


class MarketplaceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class InputValidationError(MarketplaceError):
    """Missing or malformed input, or a value outside an enumeration."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please provide all required fields"


class ConflictError(MarketplaceError):
    """A uniqueness constraint was violated at the store boundary."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class UnauthorizedError(MarketplaceError):
    """Missing, malformed, expired or unverifiable credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class InvalidTokenError(UnauthorizedError):
    """Raised by the token verifier; never escapes the auth layer on its own."""

    default_message = "Invalid or expired token"


class ForbiddenError(MarketplaceError):
    """Authenticated identity lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access forbidden"


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"
