"""Bcrypt password hasher adapter."""

from __future__ import annotations

import bcrypt

from artswave_auth.application.ports.password_hasher_port import PasswordHasherPort
from artswave_auth.domain.auth.errors import HashingError

DEFAULT_BCRYPT_ROUNDS = 12


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt.

    Each hash embeds its own random salt and cost factor, so no separate salt
    storage is needed. ``checkpw`` compares digests in constant time.
    """

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        if not isinstance(password, str):
            raise HashingError("password must be a string")
        try:
            salt = bcrypt.gensalt(rounds=self._rounds)
            hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        except (ValueError, OSError) as exc:
            raise HashingError("failed to hash password") from exc
        return hashed.decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if not isinstance(password, str) or not isinstance(password_hash, str):
            raise HashingError("password and password_hash must be strings")
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
