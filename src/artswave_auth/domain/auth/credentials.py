"""Explicit validation of username/password inputs before any hashing or storage."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass

from artswave_auth.domain.auth.errors import ValidationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
# bcrypt only consumes the first 72 bytes of input.
PASSWORD_MAX_BYTES = 72


@dataclass(frozen=True)
class RegistrationCredentials:
    """Username/password pair accepted for account creation."""

    username: str
    password: str


@dataclass(frozen=True)
class LoginCredentials:
    """Username/password pair accepted for a login attempt."""

    username: str
    password: str


def validate_registration_credentials(
    *,
    username: str | None,
    password: str | None,
) -> RegistrationCredentials:
    """Validate registration input and return the accepted credentials.

    Rules:
        - both fields are required and non-empty
        - username length must be within [3, 30]
        - username must not contain control characters, which storage rejects
        - password length must be at least 6 characters and at most 72 UTF-8 bytes,
          with no NUL characters
    """

    _require_present(username=username, password=password)
    assert username is not None
    assert password is not None

    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"username must be between {USERNAME_MIN_LENGTH} and "
            f"{USERNAME_MAX_LENGTH} characters"
        )
    if any(unicodedata.category(char) == "Cc" for char in username):
        raise ValidationError("username must not contain control characters")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    if "\x00" in password:
        raise ValidationError("password must not contain NUL characters")

    return RegistrationCredentials(username=username, password=password)


def validate_login_credentials(
    *,
    username: str | None,
    password: str | None,
) -> LoginCredentials:
    """Validate login input presence; lengths are not checked at login."""

    _require_present(username=username, password=password)
    assert username is not None
    assert password is not None
    return LoginCredentials(username=username, password=password)


def _require_present(*, username: str | None, password: str | None) -> None:
    if not username or not password:
        raise ValidationError("username and password are required")
