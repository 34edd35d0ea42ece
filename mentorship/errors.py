"""Error kinds raised by the mentorship registry core."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for failures surfaced to the request-handling layer."""

    kind = "registry_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConflictError(RegistryError):
    kind = "conflict"


class NotFoundError(RegistryError):
    kind = "not_found"


class AuthError(RegistryError):
    kind = "auth_failed"


class NotLoggedInError(RegistryError):
    kind = "not_logged_in"


class InvalidTransitionError(RegistryError):
    kind = "invalid_transition"


class ValidationError(RegistryError, ValueError):
    """Raised for malformed input that never reaches the store."""

    kind = "invalid_input"


__all__ = [
    "AuthError",
    "ConflictError",
    "InvalidTransitionError",
    "NotFoundError",
    "NotLoggedInError",
    "RegistryError",
    "ValidationError",
]
