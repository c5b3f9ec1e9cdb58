"""Typed error taxonomy for registration and login flows."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all authentication core errors."""


class ValidationError(AuthError, ValueError):
    """Raised when registration or login input is missing or malformed."""


class DuplicateUsernameError(AuthError):
    """Raised when a username is already taken by another account."""

    def __init__(self, *, username: str) -> None:
        super().__init__("username already exists")
        self.username = username


class InvalidCredentialsError(AuthError, PermissionError):
    """Raised for unknown usernames and wrong passwords alike."""

    def __init__(self) -> None:
        super().__init__("invalid credentials")


class HashingError(AuthError):
    """Raised when password hashing or verification cannot be performed."""


class StorageError(AuthError):
    """Raised on storage connectivity, timeout, or unclassified constraint failures."""


class NotFoundError(AuthError, LookupError):
    """Raised when a user disappears between lookup and update."""

    def __init__(self, *, username: str) -> None:
        super().__init__("user not found")
        self.username = username
