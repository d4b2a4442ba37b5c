"""Domain exceptions.

Managers raise these; the API layer maps ``status_code`` onto the HTTP
response so handlers never build error payloads themselves.
"""

from typing import Any, List, Optional


class DreamlightError(Exception):
    """Base class for all expected application errors."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(DreamlightError):
    """Request is well-formed but violates a business rule."""
    status_code = 400


class AuthenticationError(DreamlightError):
    status_code = 401


class AuthorizationError(DreamlightError):
    status_code = 403


class NotFoundError(DreamlightError):
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str) -> "NotFoundError":
        return cls(f"{entity} not found")
