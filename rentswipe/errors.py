"""Error kinds raised by the authentication service.

Each error carries the HTTP status it maps to and a message that is safe to
show to clients. Storage details never end up in ``message``.
"""

from __future__ import annotations

from fastapi import status


class AuthServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields."


class ConflictError(AuthServiceError):
    """An account already exists for the normalized email."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "An account with that email already exists."


class AuthError(AuthServiceError):
    """Unknown email or wrong password. The two cases are indistinguishable."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password."


class InternalError(AuthServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


__all__ = [
    "AuthServiceError",
    "AuthError",
    "ConflictError",
    "InternalError",
    "ValidationError",
]
